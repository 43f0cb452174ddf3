"""
Deployment Signer Tests
"""

import pytest
from eth_account import Account

from deployer.errors import DeploymentFailure
from deployer.wallet import DeploymentSigner
from conftest import DEPLOYER_ADDRESS


TEST_KEY = '0x' + '11' * 32


class TestNodeAccount:
    """Test signing through the node"""

    def test_first_account_checksummed(self, w3):
        signer = DeploymentSigner(w3)

        assert not signer.is_local
        assert signer.address == DEPLOYER_ADDRESS

    def test_no_accounts(self, w3):
        w3.eth.accounts = []

        with pytest.raises(DeploymentFailure, match='DEPLOYER_PRIVATE_KEY'):
            DeploymentSigner(w3)

    def test_send_uses_node(self, w3):
        signer = DeploymentSigner(w3)
        tx = {'from': signer.address, 'data': '0x6080'}

        signer.send_transaction(tx)

        w3.eth.send_transaction.assert_called_once_with(tx)


class TestLocalKey:
    """Test local private key signing"""

    def test_address_from_key(self, w3):
        signer = DeploymentSigner(w3, TEST_KEY)

        assert signer.is_local
        assert signer.address == Account.from_key(TEST_KEY).address

    def test_invalid_key_not_leaked(self, w3):
        bad_key = '0x1234deadbeef'

        with pytest.raises(DeploymentFailure) as exc_info:
            DeploymentSigner(w3, bad_key)

        assert exc_info.value.stage == 'config'
        assert 'deadbeef' not in str(exc_info.value)
        assert exc_info.value.__cause__ is None

    def test_nonce_includes_pending(self, w3):
        w3.eth.get_transaction_count.return_value = 4
        signer = DeploymentSigner(w3, TEST_KEY)

        assert signer.get_nonce() == 4
        w3.eth.get_transaction_count.assert_called_once_with(signer.address, 'pending')

    def test_send_signs_locally(self, w3):
        signer = DeploymentSigner(w3, TEST_KEY)
        tx = {
            'from': signer.address,
            'nonce': 0,
            'gas': 120000,
            'maxFeePerGas': 3_000_000_000,
            'maxPriorityFeePerGas': 1_000_000_000,
            'chainId': 31337,
            'value': 0,
            'data': '0x6080'
        }

        signer.send_transaction(tx)

        raw = w3.eth.send_raw_transaction.call_args[0][0]
        # Typed (EIP-1559) transaction envelope
        assert bytes(raw)[0] == 2
        w3.eth.send_transaction.assert_not_called()
