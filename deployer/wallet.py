"""
Deployment Signer
Signs and broadcasts the deployment transaction
"""

from typing import Dict, Optional
from web3 import Web3
from eth_account import Account
from loguru import logger

from .errors import DeploymentFailure


class DeploymentSigner:
    """
    Deployer account used for the deployment transaction

    Two modes:
    - Local key: DEPLOYER_PRIVATE_KEY is set, transactions are signed here
      and sent with eth_sendRawTransaction
    - Node account: no key, the node's first unlocked account signs
      (development nodes such as `npx hardhat node` or anvil)
    """

    def __init__(self, w3: Web3, private_key: Optional[str] = None):
        """
        Initialize Deployment Signer

        Args:
            w3: Web3 instance
            private_key: Hex private key (None = use node account)
        """
        self.w3 = w3

        if private_key:
            try:
                self.account = Account.from_key(private_key)
            except Exception as e:
                # Never echo the key itself
                raise DeploymentFailure(
                    f"Invalid DEPLOYER_PRIVATE_KEY ({type(e).__name__})",
                    stage='config'
                ) from None
            self.address = self.account.address
            logger.info(f"Deploying from local key: {self.address}")
        else:
            self.account = None
            self.address = self._node_account()
            logger.info(f"Deploying from node account: {self.address}")

    @property
    def is_local(self) -> bool:
        return self.account is not None

    def _node_account(self) -> str:
        """First account managed by the node"""
        try:
            accounts = self.w3.eth.accounts
        except Exception as e:
            raise DeploymentFailure(f"Cannot list node accounts: {e}", stage='config') from e

        if not accounts:
            raise DeploymentFailure(
                "No DEPLOYER_PRIVATE_KEY set and the node manages no accounts",
                stage='config'
            )

        return Web3.to_checksum_address(accounts[0])

    def get_nonce(self) -> int:
        """Next nonce, pending transactions included"""
        return self.w3.eth.get_transaction_count(self.address, 'pending')

    def get_balance(self) -> int:
        """Deployer balance in wei"""
        return self.w3.eth.get_balance(self.address)

    def send_transaction(self, transaction: Dict):
        """
        Sign (when local) and broadcast a transaction

        Args:
            transaction: Fully built transaction dict

        Returns:
            Transaction hash
        """
        if self.is_local:
            signed_tx = self.account.sign_transaction(transaction)
            return self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)

        return self.w3.eth.send_transaction(transaction)
