"""
TransferPipeline: runs validation, proving and submission for one transfer.

Flow:
1. Collect and validate the intent (input provider)
2. Build the reference record and convert the amount
3. Dry-run exit, or stop at the confirmation checkpoint
4. Request the proof
5. Submit quantumTransferZK and wait for the receipt
6. Report

A stage error ends the run in `failed` with the raised exception attached;
nothing is retried.
"""
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from qrypta.components.contracts import (ProofBundle, ProveRequest,
                                         ReferenceRecord, SubmissionRequest,
                                         SubmissionResult, TransferIntent)
from qrypta.components.reference import DEFAULT_TITLE, build_reference
from qrypta.components.units import from_base_units, to_base_units
from qrypta.components.validation import (is_address_like, is_valid_amount,
                                          validate_address, validate_amount)
from qrypta.core.chains import CHAINS
from qrypta.core.config import ChainEndpoint, PipelineConfig
from qrypta.core.errors import PipelineError
from qrypta.core.logging_config import LoggingConfig
from qrypta.core.utils import format_duration, shorten
from qrypta.pipeline.lifecycle import (SUCCESSFUL_TERMINAL_STATES,
                                       TERMINAL_STATES, PipelineState,
                                       Transition, validate_transition)
from qrypta.services.input_provider import InputProvider
from qrypta.services.prover_client import ProverClient
from qrypta.services.transaction_submitter import TransactionSubmitter

logger = LoggingConfig.get_logger(__name__)

Reporter = Callable[[str, Mapping[str, str]], None]


class PipelineStateError(RuntimeError):
    """Orchestrator attempted a transition the lifecycle forbids"""


@dataclass(frozen=True)
class RunOptions:
    dry_run: bool = False
    fake_proof: bool = False
    deadline_minutes: Optional[int] = None


@dataclass
class PipelineResult:
    """Outcome of one run; `error` is the exception raised by the failing stage"""

    run_id: str
    state: PipelineState = PipelineState.COLLECTING
    intent: Optional[TransferIntent] = None
    reference: Optional[ReferenceRecord] = None
    iso_reference: Optional[str] = None
    amount_wei: Optional[int] = None
    proof: Optional[ProofBundle] = None
    submission: Optional[SubmissionResult] = None
    error: Optional[PipelineError] = None
    transitions: List[Transition] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def exit_code(self) -> int:
        return 0 if self.state in SUCCESSFUL_TERMINAL_STATES else 1

    def transition_to(self, target: PipelineState, message: str) -> None:
        check = validate_transition(self.state, target)
        if not check.allowed:
            raise PipelineStateError(check.reason)

        transition = Transition(from_state=self.state, to_state=target, message=message)
        self.transitions.append(transition)
        logger.info(
            f"Run {self.run_id}: {self.state.value} -> {target.value} ({message})",
            extra={"from_state": self.state.value, "to_state": target.value},
        )
        self.state = target


class TransferPipeline:
    """
    Orchestrates one transfer run

    Args:
        config: Validated configuration snapshot
        input_provider: Source of intent fields and the confirmation answer
        prover: Proof client (built from config when omitted)
        submitter: Transaction submitter (built from config when omitted)
        reporter: Receives titled key/value blocks for the operator
    """

    def __init__(
        self,
        config: PipelineConfig,
        input_provider: InputProvider,
        prover: Optional[ProverClient] = None,
        submitter: Optional[TransactionSubmitter] = None,
        reporter: Optional[Reporter] = None,
    ):
        self.config = config
        self.input_provider = input_provider
        self.prover = prover or ProverClient(config.prover_url, config.prover_timeout_seconds)
        self.submitter = submitter or TransactionSubmitter(
            confirmation_timeout_seconds=config.confirmation_timeout_seconds,
            poll_latency_seconds=config.confirmation_poll_seconds,
        )
        self.reporter = reporter

    async def run(self, options: Optional[RunOptions] = None) -> PipelineResult:
        options = options or RunOptions()
        result = PipelineResult(run_id=uuid4().hex[:12])
        LoggingConfig.set_context(run_id=result.run_id)
        started = time.monotonic()
        try:
            await self._advance(result, options)
        except PipelineError as e:
            self._fail(result, e)
        finally:
            logger.info(
                f"Run {result.run_id} ended in {result.state.value} after {format_duration(time.monotonic() - started)}"
            )
            LoggingConfig.clear_context()
        if not result.is_terminal:
            raise PipelineStateError(f"run {result.run_id} stopped in non-terminal state {result.state.value}")
        return result

    async def _advance(self, result: PipelineResult, options: RunOptions) -> None:
        intent = self.collect_intent()
        result.intent = intent
        result.transition_to(PipelineState.VALIDATED, "Recipient and amount validated")
        LoggingConfig.set_context(chain=intent.chain.value)

        endpoint = self.config.endpoint(intent.chain)
        amount_wei = to_base_units(intent.amount_human, self.config.decimals)
        reference = build_reference(intent, project=self.config.reference_project)
        # Serialized exactly once; the same string goes to the prover and the chain
        iso_reference = reference.serialize()
        result.reference = reference
        result.iso_reference = iso_reference
        result.amount_wei = amount_wei

        deadline_minutes = options.deadline_minutes or self.config.deadline_minutes
        summary = self._transfer_summary(intent, endpoint, amount_wei, deadline_minutes, iso_reference)

        if options.dry_run:
            self._report("Dry run (nothing sent)", summary)
            result.transition_to(PipelineState.DRY_RUN_EXIT, "Dry run requested")
            return

        result.transition_to(PipelineState.AWAITING_CONFIRMATION, "Waiting for operator confirmation")
        if not self.input_provider.confirm(summary):
            result.transition_to(PipelineState.CANCELLED, "Operator declined")
            return

        result.transition_to(PipelineState.PROVING, "Confirmed; requesting proof")
        proof = await self.prover.request_proof(ProveRequest(
            chain=intent.chain,
            recipient=intent.recipient,
            amount_wei=amount_wei,
            iso_reference=iso_reference,
            fake=options.fake_proof,
            deadline_minutes=deadline_minutes,
        ))
        result.proof = proof
        result.transition_to(PipelineState.PROVED, "Proof generated")
        self._report("Proof generated", {
            "isoRefHash": proof.iso_ref_hash.to_hex() if proof.iso_ref_hash else "(not provided)",
            "publicValues": proof.public_values.shorten(),
            "proofBytes": proof.proof_bytes.shorten(),
        })

        result.transition_to(PipelineState.SUBMITTING, f"Broadcasting on {CHAINS[intent.chain].label}")
        submission = await self.submitter.submit(SubmissionRequest(
            chain=intent.chain,
            rpc_url=endpoint.rpc_url,
            contract_address=endpoint.contract_address,
            signing_credential=self.config.signing_credential,
            recipient=intent.recipient,
            amount_human=intent.amount_human,
            proof=proof,
            iso_reference=iso_reference,
            decimals=self.config.decimals,
        ))
        result.submission = submission
        result.transition_to(PipelineState.SUBMITTED, "Receipt received")

        self._report("Transaction confirmed", self.receipt_rows(intent, submission))
        result.transition_to(PipelineState.REPORTED, "Receipt reported")

    def collect_intent(self) -> TransferIntent:
        """
        Ask the input provider for each field and validate it

        Raises:
            InvalidInput: a value failed validation (non-interactive providers)
        """
        provider = self.input_provider
        chain = provider.select_chain(self.config.available_chains)
        recipient = validate_address(provider.recipient(is_address_like))
        amount_text = provider.amount(is_valid_amount)
        validate_amount(amount_text)
        title = provider.reference_title(DEFAULT_TITLE)
        return TransferIntent(
            chain=chain,
            recipient=recipient,
            amount_human=amount_text.strip(),
            reference_title=title,
        )

    def _transfer_summary(
        self,
        intent: TransferIntent,
        endpoint: ChainEndpoint,
        amount_wei: int,
        deadline_minutes: int,
        iso_reference: str,
    ) -> Dict[str, str]:
        return {
            "Network": CHAINS[intent.chain].label,
            "Contract": endpoint.contract_address,
            "Recipient": intent.recipient,
            "Amount": f"{intent.amount_human} (wei: {amount_wei})",
            "Deadline": f"~{deadline_minutes} minutes",
            "ISO Ref": iso_reference,
        }

    @staticmethod
    def receipt_rows(intent: TransferIntent, submission: SubmissionResult) -> Dict[str, str]:
        chain = CHAINS[intent.chain]
        rows = {
            "txHash": submission.transaction_hash,
            "status": submission.status_label,
            "block": str(submission.block_number),
            "gasUsed": str(submission.gas_used),
            "amount": f"{from_base_units(submission.amount_wei)} ({submission.amount_wei} wei)",
        }
        if submission.effective_gas_price is not None:
            rows["effectiveGasPrice"] = str(submission.effective_gas_price)
        rows["logs"] = str(submission.log_count)
        rows["explorer"] = chain.tx_url(submission.transaction_hash)
        return rows

    def _report(self, title: str, rows: Mapping[str, str]) -> None:
        logger.info(f"{title}: " + ", ".join(f"{k}={shorten(str(v), 66)}" for k, v in rows.items()))
        if self.reporter is not None:
            self.reporter(title, rows)

    def _fail(self, result: PipelineResult, error: PipelineError) -> None:
        error.stage = result.state.value
        result.error = error
        logger.error(
            f"Run {result.run_id} failed during {error.stage}: {error.kind}: {error}",
            extra={"error": error.to_dict()},
        )
        result.transition_to(PipelineState.FAILED, f"{error.kind} during {error.stage}")
