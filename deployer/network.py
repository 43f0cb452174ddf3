"""
Network Connection
Connects to the deployment target over JSON-RPC
"""

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware
from loguru import logger

from .config import DeployConfig
from .errors import DeploymentFailure


def connect(config: DeployConfig) -> Web3:
    """
    Connect to the configured network

    Args:
        config: Deployment configuration

    Returns:
        Connected Web3 instance

    Raises:
        DeploymentFailure: Node unreachable or on the wrong chain
    """
    w3 = Web3(Web3.HTTPProvider(
        config.rpc_url,
        request_kwargs={'timeout': config.rpc_timeout}
    ))

    # PoA chains (Polygon PoS, BSC, Gnosis) carry extra data in block headers
    if config.poa:
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    if not w3.is_connected():
        raise DeploymentFailure(
            f"Failed to connect to network '{config.network}' at {config.rpc_url}",
            stage='connect'
        )

    try:
        chain_id = w3.eth.chain_id
    except Exception as e:
        raise DeploymentFailure(f"Cannot read chain id: {e}", stage='connect') from e

    if config.chain_id is not None and chain_id != config.chain_id:
        raise DeploymentFailure(
            f"Network '{config.network}' reports chain id {chain_id}, "
            f"expected {config.chain_id}",
            stage='connect'
        )

    logger.info(f"Connected to {config.network} (chain id {chain_id})")
    return w3
