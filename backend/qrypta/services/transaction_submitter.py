"""
Transaction submitter for quantumTransferZK

Builds, signs and broadcasts one contract call, then waits for its receipt.
Blocking web3 calls run in a worker thread so the pipeline stays async.
"""
import asyncio
import re
from typing import Any, Callable, Mapping, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import ValidationError as KeyValidationError
from pydantic import SecretStr
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception

from qrypta.components.contracts import SubmissionRequest, SubmissionResult
from qrypta.components.units import to_base_units
from qrypta.core.abi import QRYP_ABI, QUANTUM_TRANSFER_FN
from qrypta.core.chains import CHAINS, ChainInfo
from qrypta.core.errors import BroadcastError, ConfirmationTimeout, InvalidCredential
from qrypta.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

_PRIVATE_KEY = re.compile(r"^0x[0-9a-fA-F]{64}$")

# Node and transport failures seen while building or sending
_NODE_ERRORS = (Web3Exception, ValueError, TypeError, OSError)

Web3Factory = Callable[[str], Web3]


def http_web3_factory(request_timeout_seconds: float = 30.0) -> Web3Factory:
    def factory(rpc_url: str) -> Web3:
        return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout_seconds}))
    return factory


def load_account(credential: SecretStr) -> LocalAccount:
    """
    Derive the signing account from a hex private key

    Raises:
        InvalidCredential: not a 32-byte hex key (the key never appears in the message)
    """
    key = credential.get_secret_value().strip()
    if not key.lower().startswith("0x"):
        key = f"0x{key}"
    if not _PRIVATE_KEY.match(key):
        raise InvalidCredential("Signing credential is not a 32-byte hex private key")
    try:
        return Account.from_key(key)
    except (ValueError, TypeError, KeyValidationError) as e:
        raise InvalidCredential(f"Signing credential rejected: {type(e).__name__}") from None


class TransactionSubmitter:
    """
    Sends quantumTransferZK(recipient, amount, publicValues, proofBytes, isoReference)

    Args:
        confirmation_timeout_seconds: How long web3 polls for the receipt
        poll_latency_seconds: Receipt poll interval
        web3_factory: Builds a Web3 for an RPC URL (tests inject a mock)
    """

    def __init__(
        self,
        confirmation_timeout_seconds: float = 180.0,
        poll_latency_seconds: float = 2.0,
        web3_factory: Optional[Web3Factory] = None,
    ):
        self.confirmation_timeout_seconds = confirmation_timeout_seconds
        self.poll_latency_seconds = poll_latency_seconds
        self._web3_factory = web3_factory or http_web3_factory()

    async def submit(self, request: SubmissionRequest) -> SubmissionResult:
        amount_wei = to_base_units(request.amount_human, request.decimals)
        account = load_account(request.signing_credential)
        chain = CHAINS[request.chain]
        w3 = self._web3_factory(request.rpc_url)

        tx_hash = await asyncio.to_thread(self._build_and_send, w3, account, chain, request, amount_wei)
        logger.info(
            f"Broadcast {QUANTUM_TRANSFER_FN} on {chain.label}: {tx_hash}",
            extra={"chain": chain.key.value, "transaction_hash": tx_hash},
        )

        receipt = await asyncio.to_thread(self._wait_for_receipt, w3, tx_hash)
        result = self._to_result(tx_hash, receipt, amount_wei)
        logger.info(
            f"Transaction {tx_hash} included in block {result.block_number} (status={result.status})",
            extra={"transaction_hash": tx_hash, "block_number": result.block_number},
        )
        return result

    def _build_and_send(
        self,
        w3: Web3,
        account: LocalAccount,
        chain: ChainInfo,
        request: SubmissionRequest,
        amount_wei: int,
    ) -> str:
        try:
            contract = w3.eth.contract(
                address=Web3.to_checksum_address(request.contract_address),
                abi=QRYP_ABI,
            )
            call = getattr(contract.functions, QUANTUM_TRANSFER_FN)(
                Web3.to_checksum_address(request.recipient),
                amount_wei,
                bytes(request.proof.public_values),
                bytes(request.proof.proof_bytes),
                request.iso_reference,
            )
            tx = call.build_transaction({
                "from": account.address,
                "nonce": w3.eth.get_transaction_count(account.address),
                "chainId": chain.chain_id,
            })
        except _NODE_ERRORS as e:
            logger.warning(f"Building transaction failed: {e}")
            raise BroadcastError(e, phase="build") from e

        try:
            signed = account.sign_transaction(tx)
        except _NODE_ERRORS as e:
            raise BroadcastError(e, phase="sign") from e

        try:
            raw_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        except _NODE_ERRORS as e:
            logger.warning(f"Broadcast rejected: {e}")
            raise BroadcastError(e, phase="broadcast") from e

        return Web3.to_hex(raw_hash)

    def _wait_for_receipt(self, w3: Web3, tx_hash: str) -> Mapping[str, Any]:
        try:
            return w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.confirmation_timeout_seconds,
                poll_latency=self.poll_latency_seconds,
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(tx_hash, self.confirmation_timeout_seconds) from e
        except _NODE_ERRORS as e:
            # The transaction is already out; losing the node means no receipt
            logger.warning(f"Receipt polling for {tx_hash} failed: {e}")
            timeout = ConfirmationTimeout(tx_hash, self.confirmation_timeout_seconds)
            timeout.metadata["cause"] = str(e)
            raise timeout from e

    @staticmethod
    def _to_result(tx_hash: str, receipt: Mapping[str, Any], amount_wei: int) -> SubmissionResult:
        return SubmissionResult(
            transaction_hash=tx_hash,
            status=receipt["status"],
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
            effective_gas_price=receipt.get("effectiveGasPrice"),
            log_count=len(receipt.get("logs") or []),
            amount_wei=amount_wei,
        )
