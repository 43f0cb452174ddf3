"""
Deployment Runner
Resolves a contract artifact, submits its deployment and waits for confirmation
"""

from dataclasses import dataclass
from typing import Optional, Sequence
from web3 import Web3
from web3.exceptions import TimeExhausted
from loguru import logger

from .artifacts import ArtifactResolver
from .config import DeployConfig
from .errors import DeploymentFailure
from .gas import GasPlanner
from .wallet import DeploymentSigner


@dataclass(frozen=True)
class PendingDeployment:
    """Deployment transaction that was broadcast but not yet confirmed"""

    contract_name: str
    tx_hash: str
    deployer: str
    nonce: int


@dataclass(frozen=True)
class DeployedContract:
    """Confirmed deployment"""

    contract_name: str
    address: str
    tx_hash: str
    block_number: int
    gas_used: int


class DeploymentRunner:
    """
    Runs one contract deployment

    resolve -> submit -> wait_for_confirmation, each step raising
    DeploymentFailure on error. There are no retries: deploy() broadcasts
    exactly one transaction.
    """

    def __init__(
        self,
        w3: Web3,
        signer: DeploymentSigner,
        config: DeployConfig,
        resolver: Optional[ArtifactResolver] = None,
        gas_planner: Optional[GasPlanner] = None
    ):
        """
        Initialize Deployment Runner

        Args:
            w3: Connected Web3 instance
            signer: Deployer account
            config: Deployment configuration
            resolver: Artifact resolver (default: config.artifacts_dir)
            gas_planner: Gas planner (default: built from config)
        """
        self.w3 = w3
        self.signer = signer
        self.config = config
        self.resolver = resolver or ArtifactResolver(config.artifacts_dir)
        self.gas_planner = gas_planner or GasPlanner(w3, config)

    def resolve(self, contract_name: str):
        """
        Resolve a contract name into a deployable factory

        Returns:
            Tuple of (ContractArtifact, contract factory)
        """
        try:
            return self.resolver.contract_factory(self.w3, contract_name)
        except DeploymentFailure:
            raise
        except Exception as e:
            raise DeploymentFailure(
                f"Cannot resolve {contract_name}: {e}", stage='resolve'
            ) from e

    def submit(
        self,
        contract_name: str,
        factory,
        constructor_args: Sequence = ()
    ) -> PendingDeployment:
        """
        Build, sign and broadcast the deployment transaction

        Args:
            contract_name: Name used in logs and the returned handle
            factory: web3 contract factory
            constructor_args: Constructor arguments

        Returns:
            PendingDeployment handle
        """
        try:
            constructor = factory.constructor(*constructor_args)
            sender = self.signer.address

            gas_limit = self.gas_planner.estimate_gas_limit(constructor, sender)
            fees = self.gas_planner.fee_params()

            max_cost = self.gas_planner.max_cost(gas_limit, fees)
            balance = self.signer.get_balance()
            logger.info(
                f"Deployer balance: {Web3.from_wei(balance, 'ether')} ETH, "
                f"max deployment cost: {Web3.from_wei(max_cost, 'ether')} ETH"
            )

            if balance < max_cost:
                raise DeploymentFailure(
                    f"Insufficient balance for deployment: {sender} holds {balance} wei, "
                    f"needs up to {max_cost} wei",
                    stage='submit'
                )

            nonce = self.signer.get_nonce()
            transaction = constructor.build_transaction({
                'from': sender,
                'nonce': nonce,
                'gas': gas_limit,
                'chainId': self.w3.eth.chain_id,
                **fees
            })

            logger.info(f"Sending deployment transaction for {contract_name} (nonce {nonce})...")
            tx_hash = self.signer.send_transaction(transaction)

        except DeploymentFailure:
            raise
        except Exception as e:
            raise DeploymentFailure(
                f"Deployment transaction for {contract_name} failed: {e}", stage='submit'
            ) from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {tx_hash_hex}")

        return PendingDeployment(
            contract_name=contract_name,
            tx_hash=tx_hash_hex,
            deployer=sender,
            nonce=nonce
        )

    def wait_for_confirmation(self, pending: PendingDeployment) -> DeployedContract:
        """
        Block until the deployment transaction is mined

        Args:
            pending: Handle returned by submit()

        Returns:
            DeployedContract

        Raises:
            DeploymentFailure: Timeout, reverted transaction or no contract address
        """
        logger.info("Waiting for confirmation...")

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                pending.tx_hash,
                timeout=self.config.confirmation_timeout,
                poll_latency=self.config.poll_interval
            )
        except TimeExhausted as e:
            raise DeploymentFailure(
                f"Transaction {pending.tx_hash} not confirmed within "
                f"{self.config.confirmation_timeout:g}s",
                stage='confirm'
            ) from e
        except Exception as e:
            raise DeploymentFailure(
                f"Error waiting for {pending.tx_hash}: {e}", stage='confirm'
            ) from e

        if receipt['status'] != 1:
            raise DeploymentFailure(
                f"Deployment of {pending.contract_name} reverted "
                f"(transaction {pending.tx_hash}, block {receipt.get('blockNumber')})",
                stage='confirm'
            )

        contract_address = receipt.get('contractAddress')
        if not contract_address:
            raise DeploymentFailure(
                f"Receipt for {pending.tx_hash} carries no contract address",
                stage='confirm'
            )

        deployed = DeployedContract(
            contract_name=pending.contract_name,
            address=Web3.to_checksum_address(contract_address),
            tx_hash=pending.tx_hash,
            block_number=receipt.get('blockNumber'),
            gas_used=receipt.get('gasUsed')
        )

        logger.success(f"{deployed.contract_name} deployed in block {deployed.block_number}")
        logger.debug(f"Gas used: {deployed.gas_used}")
        return deployed

    def deploy(
        self,
        contract_name: Optional[str] = None,
        constructor_args: Sequence = ()
    ) -> DeployedContract:
        """
        Deploy a contract and wait for it to be confirmed

        Args:
            contract_name: Contract to deploy (default: config.contract_name)
            constructor_args: Constructor arguments

        Returns:
            DeployedContract
        """
        contract_name = contract_name or self.config.contract_name
        logger.info(f"Deploying {contract_name} to {self.config.network}...")

        artifact, factory = self.resolve(contract_name)
        pending = self.submit(artifact.contract_name, factory, constructor_args)
        return self.wait_for_confirmation(pending)
