"""
Deployment Configuration
Resolves the deployment target from environment variables and config/networks.json
"""

import os
import json
import math
from dataclasses import dataclass, field
from typing import Dict, Optional
from loguru import logger
from dotenv import load_dotenv

from .errors import DeploymentFailure

load_dotenv()


DEFAULT_NETWORKS_FILE = 'config/networks.json'
DEFAULT_NETWORK = 'localhost'
LOCALHOST_RPC_URL = 'http://127.0.0.1:8545'

DEFAULT_CONTRACT = 'WarrantyNFT'
DEFAULT_ARTIFACTS_DIR = 'artifacts'
DEFAULT_GAS_LIMIT = 3_000_000
DEFAULT_GAS_BUFFER = 1.2
DEFAULT_CONFIRMATION_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_RPC_TIMEOUT = 60.0

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


@dataclass(frozen=True)
class DeployConfig:
    """
    Everything the runner needs to know about the deployment target

    Built once per invocation by from_env(); the CLI applies its own
    overrides on top with dataclasses.replace().
    """

    network: str
    rpc_url: str
    chain_id: Optional[int] = None
    private_key: Optional[str] = field(default=None, repr=False)
    contract_name: str = DEFAULT_CONTRACT
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR
    gas_limit: int = DEFAULT_GAS_LIMIT
    gas_buffer: float = DEFAULT_GAS_BUFFER
    max_gas_price_gwei: Optional[float] = None
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    poa: bool = False
    save_env_key: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        network: Optional[str] = None,
        networks_file: Optional[str] = None
    ) -> 'DeployConfig':
        """
        Build configuration from the environment

        Args:
            network: Network name (overrides DEPLOY_NETWORK)
            networks_file: Path to networks JSON (overrides DEPLOY_NETWORKS_FILE)

        Returns:
            DeployConfig instance

        Raises:
            DeploymentFailure: Unknown network, missing RPC URL or a malformed value
        """
        networks_file = networks_file or os.getenv('DEPLOY_NETWORKS_FILE', DEFAULT_NETWORKS_FILE)
        networks_config = load_networks_file(networks_file)

        network = (
            network
            or os.getenv('DEPLOY_NETWORK')
            or networks_config.get('default_network')
            or DEFAULT_NETWORK
        )
        network_entry = _network_entry(networks_config, network)

        rpc_url = os.getenv('DEPLOY_RPC_URL') or _network_rpc_url(network, network_entry)
        if not rpc_url:
            raise DeploymentFailure(
                f"No RPC URL for network '{network}' (set DEPLOY_RPC_URL)",
                stage='config'
            )

        chain_id = _env_int('DEPLOY_CHAIN_ID')
        if chain_id is None and network_entry.get('chain_id') is not None:
            chain_id = _as_int('chain_id', network_entry['chain_id'])

        poa = _env_bool('DEPLOY_POA')
        if poa is None:
            poa = bool(network_entry.get('poa', False))

        gas_limit = _env_int('DEPLOY_GAS_LIMIT')
        gas_buffer = _env_float('DEPLOY_GAS_BUFFER')
        timeout = _env_float('DEPLOY_CONFIRMATION_TIMEOUT')
        poll_interval = _env_float('DEPLOY_POLL_INTERVAL')

        config = cls(
            network=network,
            rpc_url=rpc_url,
            chain_id=chain_id,
            private_key=os.getenv('DEPLOYER_PRIVATE_KEY') or None,
            contract_name=os.getenv('DEPLOY_CONTRACT') or DEFAULT_CONTRACT,
            artifacts_dir=os.getenv('DEPLOY_ARTIFACTS_DIR') or DEFAULT_ARTIFACTS_DIR,
            gas_limit=gas_limit if gas_limit is not None else DEFAULT_GAS_LIMIT,
            gas_buffer=gas_buffer if gas_buffer is not None else DEFAULT_GAS_BUFFER,
            max_gas_price_gwei=_env_float('DEPLOY_MAX_GAS_PRICE_GWEI'),
            confirmation_timeout=timeout if timeout is not None else DEFAULT_CONFIRMATION_TIMEOUT,
            poll_interval=poll_interval if poll_interval is not None else DEFAULT_POLL_INTERVAL,
            poa=poa,
            save_env_key=os.getenv('DEPLOY_SAVE_ENV_KEY') or None
        )
        config.validate()

        logger.debug(f"Deployment target: {config.network} ({config.rpc_url})")
        return config

    def validate(self):
        """Reject values the runner cannot work with"""
        if self.gas_limit <= 0:
            raise DeploymentFailure("Gas limit must be positive", stage='config')

        if not math.isfinite(self.gas_buffer) or self.gas_buffer < 1.0:
            raise DeploymentFailure("Gas buffer must be at least 1.0", stage='config')

        if not math.isfinite(self.confirmation_timeout) or self.confirmation_timeout <= 0:
            raise DeploymentFailure("Confirmation timeout must be positive", stage='config')

        # wait_for_transaction_receipt sleeps this long between polls
        if not math.isfinite(self.poll_interval) or self.poll_interval <= 0:
            raise DeploymentFailure("Poll interval must be positive", stage='config')

        if self.max_gas_price_gwei is not None and (
            not math.isfinite(self.max_gas_price_gwei) or self.max_gas_price_gwei <= 0
        ):
            raise DeploymentFailure("Max gas price must be positive", stage='config')


def load_networks_file(path: str) -> Dict:
    """
    Load named networks from a JSON file

    Args:
        path: Path to networks file

    Returns:
        Parsed config ({} when the file does not exist)
    """
    if not os.path.exists(path):
        logger.debug(f"No networks file at {path}, using built-in defaults")
        return {}

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise DeploymentFailure(f"Cannot read networks file {path}: {e}", stage='config') from e

    if not isinstance(data, dict) or not isinstance(data.get('networks', {}), dict):
        raise DeploymentFailure(f"Malformed networks file: {path}", stage='config')

    return data


def _network_entry(networks_config: Dict, network: str) -> Dict:
    """Get the entry for one network"""
    networks = networks_config.get('networks', {})

    if network in networks:
        return networks[network]

    if network == DEFAULT_NETWORK:
        return {}

    known = ', '.join(sorted(networks)) or 'none'
    raise DeploymentFailure(
        f"Unknown network '{network}' (configured: {known})",
        stage='config'
    )


def _network_rpc_url(network: str, entry: Dict) -> Optional[str]:
    """RPC URL from the network entry, env indirection first"""
    url_env = entry.get('rpc_url_env')
    if url_env and os.getenv(url_env):
        return os.getenv(url_env)

    if entry.get('rpc_url'):
        return entry['rpc_url']

    if network == DEFAULT_NETWORK:
        return LOCALHOST_RPC_URL

    return None


def _as_int(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DeploymentFailure(f"{name} must be an integer, got {value!r}", stage='config') from e


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return None
    return _as_int(name, value.strip())


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return None

    try:
        return float(value)
    except ValueError as e:
        raise DeploymentFailure(f"{name} must be a number, got {value!r}", stage='config') from e


def _env_bool(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return None

    value = value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False

    raise DeploymentFailure(f"{name} must be true or false, got {value!r}", stage='config')
