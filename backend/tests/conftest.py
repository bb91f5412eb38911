"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Unit tests never talk to a real prover or node
for _name in ("PROVER_URL", "OWNER_PK", "RPC_ETH", "RPC_BNB", "QRYP_CONTRACT_ETH", "QRYP_CONTRACT_BNB"):
    os.environ.pop(_name, None)

from web3 import Web3  # noqa: E402

from qrypta.components.contracts import HexData, ProofBundle, SubmissionResult  # noqa: E402
from qrypta.core.config import PipelineConfig, Settings  # noqa: E402

# Throwaway key from the eth-account documentation
TEST_PK = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
RECIPIENT = "0x" + "a" * 40
CONTRACT_ETH = "0x" + "c" * 40
CONTRACT_BNB = "0x" + "b" * 40
PROVER_URL = "http://prover.test"


def make_settings(**overrides) -> Settings:
    values = dict(
        prover_url=PROVER_URL,
        owner_pk=TEST_PK,
        rpc_eth="http://rpc.eth.test",
        rpc_bnb="http://rpc.bnb.test",
        qryp_contract_eth=CONTRACT_ETH,
        qryp_contract_bnb=CONTRACT_BNB,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def pipeline_config(settings) -> PipelineConfig:
    return PipelineConfig.from_settings(settings)


@pytest.fixture
def proof_bundle() -> ProofBundle:
    return ProofBundle(public_values=HexData.from_hex("0x01"), proof_bytes=HexData.from_hex("0x02"))


@pytest.fixture
def submission_result() -> SubmissionResult:
    return SubmissionResult(
        transaction_hash="0x" + "11" * 32,
        status="success",
        block_number=100,
        gas_used=21000,
        amount_wei=2_500_000_000_000_000_000,
    )


@pytest.fixture
def fake_prover(proof_bundle):
    prover = MagicMock()
    prover.request_proof = AsyncMock(return_value=proof_bundle)
    return prover


@pytest.fixture
def fake_submitter(submission_result):
    submitter = MagicMock()
    submitter.submit = AsyncMock(return_value=submission_result)
    return submitter


@pytest.fixture
def make_w3():
    """Build a mocked Web3 whose contract call, broadcast and receipt are scripted"""

    def factory(receipt=None):
        w3 = MagicMock()
        w3.eth.get_transaction_count.return_value = 7
        call = w3.eth.contract.return_value.functions.quantumTransferZK.return_value
        call.build_transaction.return_value = {
            "to": Web3.to_checksum_address(CONTRACT_ETH),
            "data": "0x",
            "value": 0,
            "gas": 200000,
            "gasPrice": 10 ** 9,
            "nonce": 7,
            "chainId": 1,
        }
        w3.eth.send_raw_transaction.return_value = b"\x11" * 32
        w3.eth.wait_for_transaction_receipt.return_value = receipt or {
            "status": 1,
            "blockNumber": 100,
            "gasUsed": 21000,
            "effectiveGasPrice": 10 ** 9,
            "logs": [{}, {}],
        }
        return w3

    return factory
