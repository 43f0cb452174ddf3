"""
Gas Planner
Gas limit and fee parameters for the deployment transaction
"""

from typing import Dict
from web3 import Web3
from loguru import logger

from .config import DeployConfig


DEFAULT_PRIORITY_FEE_GWEI = 1.5


class GasPlanner:
    """
    Plans gas for a single deployment

    Uses EIP-1559 fees when the chain reports a base fee, legacy gasPrice
    otherwise. An optional max gas price caps both.
    """

    def __init__(self, w3: Web3, config: DeployConfig):
        """
        Initialize Gas Planner

        Args:
            w3: Web3 instance
            config: Deployment configuration
        """
        self.w3 = w3
        self.config = config

        if config.max_gas_price_gwei is not None:
            self.max_gas_price_wei = int(Web3.to_wei(config.max_gas_price_gwei, 'gwei'))
        else:
            self.max_gas_price_wei = None

    def estimate_gas_limit(self, constructor, sender: str) -> int:
        """
        Estimate the deployment gas limit

        Args:
            constructor: Contract constructor call (factory.constructor(...))
            sender: Deployer address

        Returns:
            Gas limit with buffer applied, or the configured limit if estimation fails
        """
        try:
            gas_estimate = constructor.estimate_gas({'from': sender})
        except Exception as e:
            logger.warning(f"Gas estimation failed: {e}, using default {self.config.gas_limit}")
            return self.config.gas_limit

        gas_limit = int(gas_estimate * self.config.gas_buffer)
        logger.debug(f"Gas estimate: {gas_estimate}, limit with buffer: {gas_limit}")
        return gas_limit

    def fee_params(self) -> Dict[str, int]:
        """
        Fee fields for the transaction

        Returns:
            {'maxFeePerGas', 'maxPriorityFeePerGas'} or {'gasPrice'}
        """
        latest_block = self.w3.eth.get_block('latest')
        base_fee_wei = latest_block.get('baseFeePerGas')

        if base_fee_wei is None:
            gas_price = self._cap(int(self.w3.eth.gas_price))
            logger.info(f"Gas price: {Web3.from_wei(gas_price, 'gwei')} gwei")
            return {'gasPrice': gas_price}

        try:
            priority_fee_wei = int(self.w3.eth.max_priority_fee)
        except Exception as e:
            logger.warning(
                f"eth_maxPriorityFeePerGas unavailable ({e}), "
                f"using {DEFAULT_PRIORITY_FEE_GWEI} gwei"
            )
            priority_fee_wei = int(Web3.to_wei(DEFAULT_PRIORITY_FEE_GWEI, 'gwei'))

        # Max fee = base fee * 2 + priority fee (room for base fee growth)
        max_fee_wei = self._cap(int(base_fee_wei) * 2 + priority_fee_wei)
        priority_fee_wei = min(priority_fee_wei, max_fee_wei)

        logger.info(
            f"Max fee: {Web3.from_wei(max_fee_wei, 'gwei')} gwei, "
            f"priority fee: {Web3.from_wei(priority_fee_wei, 'gwei')} gwei"
        )
        return {
            'maxFeePerGas': max_fee_wei,
            'maxPriorityFeePerGas': priority_fee_wei
        }

    def max_cost(self, gas_limit: int, fees: Dict[str, int]) -> int:
        """Worst-case deployment cost in wei"""
        price = fees.get('maxFeePerGas', fees.get('gasPrice', 0))
        return gas_limit * price

    def _cap(self, price_wei: int) -> int:
        if self.max_gas_price_wei is not None and price_wei > self.max_gas_price_wei:
            logger.warning(
                f"Capping gas price at {self.config.max_gas_price_gwei} gwei "
                f"(network asks {Web3.from_wei(price_wei, 'gwei')} gwei)"
            )
            return self.max_gas_price_wei
        return price_wei
