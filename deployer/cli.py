"""
Deployment CLI
Entry point: deploys one contract and prints its address
"""

import os
import sys
import json
import argparse
from dataclasses import replace
from typing import List, Optional
from loguru import logger

from .artifacts import ArtifactResolver
from .config import DeployConfig, DEFAULT_ARTIFACTS_DIR
from .errors import DeploymentFailure
from .network import connect
from .records import update_env_file
from .runner import DeploymentRunner, DeployedContract
from .wallet import DeploymentSigner


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

SUCCESS_MESSAGE = "Contract deployed at address: {address}"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """
    Configure loguru sinks

    Everything goes to stderr; stdout is reserved for the address line.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG" if verbose else "INFO"
    )

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format=FILE_FORMAT,
            level="DEBUG"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='deploy-contract',
        description='Deploy a compiled contract and print its address.'
    )
    parser.add_argument(
        'contract', nargs='?', default=None,
        help='Contract name or fully qualified name (default: DEPLOY_CONTRACT or WarrantyNFT)'
    )
    parser.add_argument('--network', help='Network name from config/networks.json')
    parser.add_argument(
        '--args', dest='constructor_args', default=None, metavar='JSON',
        help='Constructor arguments as a JSON list, e.g. \'["Name", 42]\''
    )
    parser.add_argument('--artifacts', help='Artifacts directory (default: artifacts)')
    parser.add_argument('--save-env', metavar='KEY', help='Write KEY=<address> to the env file')
    parser.add_argument('--env-file', default='.env', help='Env file used by --save-env')
    parser.add_argument('--list', action='store_true', help='List available artifacts and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def parse_constructor_args(raw: Optional[str]) -> List:
    """Decode --args; raises ValueError on anything but a JSON list"""
    if raw is None:
        return []

    value = json.loads(raw)
    if not isinstance(value, list):
        raise ValueError("constructor arguments must be a JSON list")
    return value


def load_config(args: argparse.Namespace) -> DeployConfig:
    """Environment config with command line overrides applied"""
    config = DeployConfig.from_env(network=args.network)

    overrides = {}
    if args.contract:
        overrides['contract_name'] = args.contract
    if args.artifacts:
        overrides['artifacts_dir'] = args.artifacts
    if args.save_env:
        overrides['save_env_key'] = args.save_env

    return replace(config, **overrides)


def deploy(config: DeployConfig, constructor_args: List) -> DeployedContract:
    """Connect, deploy and wait for confirmation"""
    w3 = connect(config)
    signer = DeploymentSigner(w3, config.private_key)
    runner = DeploymentRunner(w3, signer, config)
    return runner.deploy(constructor_args=constructor_args)


def list_artifacts(args: argparse.Namespace) -> int:
    artifacts_dir = args.artifacts or os.getenv('DEPLOY_ARTIFACTS_DIR') or DEFAULT_ARTIFACTS_DIR
    names = ArtifactResolver(artifacts_dir).available()

    if not names:
        logger.warning(f"No artifacts found in {artifacts_dir}")
        return EXIT_FAILURE

    for name in names:
        print(name)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one deployment

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        constructor_args = parse_constructor_args(args.constructor_args)
    except ValueError as e:
        parser.error(f"--args: {e}")

    setup_logging(args.verbose, os.getenv('DEPLOY_LOG_FILE'))

    if args.list:
        return list_artifacts(args)

    logger.info("=" * 70)
    logger.info("Contract Deployment")
    logger.info("=" * 70)

    try:
        config = load_config(args)
        deployed = deploy(config, constructor_args)
    except DeploymentFailure as e:
        logger.error(f"Deployment failed: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Deployment interrupted")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception(f"Deployment failed: {e}")
        return EXIT_FAILURE

    print(SUCCESS_MESSAGE.format(address=deployed.address), flush=True)
    logger.info(f"Transaction hash: {deployed.tx_hash}")

    if config.save_env_key:
        try:
            update_env_file(args.env_file, config.save_env_key, deployed.address)
        except DeploymentFailure as e:
            logger.error(f"Deployment succeeded but recording failed: {e}")
            return EXIT_FAILURE

    return EXIT_OK
