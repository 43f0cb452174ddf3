"""
Network Connection Tests
"""

import pytest
from dataclasses import replace
from unittest.mock import patch

from deployer.errors import DeploymentFailure
from deployer.network import connect


@pytest.fixture
def web3_class(w3):
    with patch('deployer.network.Web3') as web3_class:
        web3_class.return_value = w3
        yield web3_class


class TestConnect:
    """Test connecting to the deployment target"""

    def test_connected(self, web3_class, w3, config):
        assert connect(config) is w3

        web3_class.HTTPProvider.assert_called_once_with(
            'http://127.0.0.1:8545', request_kwargs={'timeout': 60.0}
        )
        w3.middleware_onion.inject.assert_not_called()

    def test_poa_middleware(self, web3_class, w3, config):
        connect(replace(config, poa=True))

        w3.middleware_onion.inject.assert_called_once()
        assert w3.middleware_onion.inject.call_args[1] == {'layer': 0}

    def test_unreachable(self, web3_class, w3, config):
        w3.is_connected.return_value = False

        with pytest.raises(DeploymentFailure, match='Failed to connect') as exc_info:
            connect(config)

        assert exc_info.value.stage == 'connect'

    def test_chain_id_mismatch(self, web3_class, w3, config):
        w3.eth.chain_id = 1

        with pytest.raises(DeploymentFailure, match='chain id 1, expected 31337'):
            connect(config)

    def test_chain_id_not_checked_when_unset(self, web3_class, w3, config):
        w3.eth.chain_id = 1

        assert connect(replace(config, chain_id=None)) is w3
