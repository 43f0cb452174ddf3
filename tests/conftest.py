"""
Shared fixtures: artifact trees and a fake chain
"""

import json
import pytest
from unittest.mock import Mock
from loguru import logger

from deployer.config import DeployConfig


DEPLOYER_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'
CONTRACT_ADDRESS = '0x5FbDB2315678afecb367f032d93F642f64180aa3'
TX_HASH = bytes.fromhex('ab' * 32)
TX_HASH_HEX = '0x' + 'ab' * 32

WARRANTY_ABI = [
    {
        "inputs": [],
        "stateMutability": "nonpayable",
        "type": "constructor"
    },
    {
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "name": "ownerOf",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    }
]
WARRANTY_BYTECODE = '0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe'


def write_artifact(root, source_name, contract_name, bytecode=WARRANTY_BYTECODE,
                   abi=None, link_references=None, foundry=False):
    """Write a Hardhat (or Foundry) style artifact under root"""
    directory = root / source_name
    directory.mkdir(parents=True, exist_ok=True)

    if foundry:
        data = {
            'abi': abi if abi is not None else WARRANTY_ABI,
            'bytecode': {
                'object': bytecode,
                'linkReferences': link_references or {}
            }
        }
    else:
        data = {
            '_format': 'hh-sol-artifact-1',
            'contractName': contract_name,
            'sourceName': source_name,
            'abi': abi if abi is not None else WARRANTY_ABI,
            'bytecode': bytecode,
            'deployedBytecode': bytecode,
            'linkReferences': link_references or {},
            'deployedLinkReferences': {}
        }

    path = directory / f'{contract_name}.json'
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def artifacts_dir(tmp_path):
    """Hardhat artifacts tree containing WarrantyNFT"""
    root = tmp_path / 'artifacts'
    write_artifact(root, 'contracts/WarrantyNFT.sol', 'WarrantyNFT')
    (root / 'build-info').mkdir()
    (root / 'build-info' / 'abc123.json').write_text('{"solcVersion": "0.8.20"}')
    (root / 'contracts/WarrantyNFT.sol/WarrantyNFT.dbg.json').write_text(
        '{"buildInfo": "../../build-info/abc123.json"}'
    )
    return root


@pytest.fixture
def config(artifacts_dir):
    """Test configuration"""
    return DeployConfig(
        network='localhost',
        rpc_url='http://127.0.0.1:8545',
        chain_id=31337,
        artifacts_dir=str(artifacts_dir),
        confirmation_timeout=5,
        poll_interval=0.1
    )


@pytest.fixture
def receipt():
    """Successful deployment receipt"""
    return {
        'status': 1,
        'contractAddress': CONTRACT_ADDRESS.lower(),
        'blockNumber': 1,
        'gasUsed': 67066,
        'transactionHash': TX_HASH
    }


@pytest.fixture
def constructor():
    """Contract constructor call"""
    constructor = Mock()
    constructor.estimate_gas.return_value = 100000
    constructor.build_transaction.side_effect = lambda tx: {
        **tx,
        'value': 0,
        'data': WARRANTY_BYTECODE
    }
    return constructor


@pytest.fixture
def factory(constructor):
    """Contract factory"""
    factory = Mock()
    factory.constructor.return_value = constructor
    return factory


@pytest.fixture
def w3(factory, receipt):
    """Fake Web3 connected to a local development node"""
    w3 = Mock()
    w3.is_connected.return_value = True
    w3.eth.chain_id = 31337
    w3.eth.accounts = [DEPLOYER_ADDRESS.lower()]
    w3.eth.get_block.return_value = {'number': 0, 'baseFeePerGas': 1_000_000_000}
    w3.eth.max_priority_fee = 1_000_000_000
    w3.eth.gas_price = 2_000_000_000
    w3.eth.get_balance.return_value = 10_000 * 10**18
    w3.eth.get_transaction_count.return_value = 0
    w3.eth.contract.return_value = factory
    w3.eth.send_transaction.return_value = TX_HASH
    w3.eth.send_raw_transaction.return_value = TX_HASH
    w3.eth.wait_for_transaction_receipt.return_value = receipt
    return w3


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop sinks added by the CLI so they don't outlive capsys"""
    yield
    logger.remove()
