"""
Error taxonomy for the transfer pipeline

Every stage raises a subclass of PipelineError. The orchestrator records the
stage on the instance and surfaces the same object; it never rewraps.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    INPUT = "input"  # Local validation, recoverable by re-prompting
    CONFIGURATION = "configuration"  # Fatal before any network call
    PROVER = "prover"  # Proving service failures
    SUBMISSION = "submission"  # Signing, broadcast and confirmation failures


class PipelineError(Exception):
    """Base class for every error a pipeline stage can raise"""

    kind: str = "PipelineError"
    category: ErrorCategory = ErrorCategory.SUBMISSION

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}
        self.stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "kind": self.kind,
            "category": self.category.value,
            "stage": self.stage,
            "message": self.message,
            "metadata": self.metadata,
        }

    def __str__(self) -> str:
        return self.message


class InvalidInput(PipelineError):
    kind = "InvalidInput"
    category = ErrorCategory.INPUT

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[str] = None):
        super().__init__(message, metadata={"field": field, "value": value})
        self.field = field
        self.value = value


class InvalidAddress(InvalidInput):
    kind = "InvalidAddress"

    def __init__(self, value: Optional[str]):
        super().__init__(f"Invalid address: {value!r}", field="recipient", value=value)


class InvalidAmount(InvalidInput):
    kind = "InvalidAmount"

    def __init__(self, value: Optional[str]):
        super().__init__(f"Invalid amount: {value!r}", field="amount", value=value)


class ConfigurationError(PipelineError):
    kind = "ConfigurationError"
    category = ErrorCategory.CONFIGURATION

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message, metadata={"setting": setting})
        self.setting = setting


class ProverServiceError(PipelineError):
    """Proving service answered with a non-2xx status or was unreachable"""

    kind = "ProverServiceError"
    category = ErrorCategory.PROVER

    def __init__(self, status: Optional[int], body: str):
        if status is None:
            message = f"Prover unreachable: {body}"
        else:
            message = f"Prover error ({status}): {body}"
        super().__init__(message, metadata={"status": status, "body": body})
        self.status = status
        self.body = body


class MalformedProverResponse(PipelineError):
    kind = "MalformedProverResponse"
    category = ErrorCategory.PROVER


class AmountConversionError(PipelineError):
    kind = "AmountConversionError"
    category = ErrorCategory.SUBMISSION

    def __init__(self, amount: str, decimals: int, reason: str):
        super().__init__(
            f"Cannot convert {amount!r} to base units at {decimals} decimals: {reason}",
            metadata={"amount": amount, "decimals": decimals},
        )
        self.amount = amount
        self.decimals = decimals


class InvalidCredential(PipelineError):
    kind = "InvalidCredential"
    category = ErrorCategory.SUBMISSION


class BroadcastError(PipelineError):
    """Node rejected the transaction or could not be reached"""

    kind = "BroadcastError"
    category = ErrorCategory.SUBMISSION

    def __init__(self, cause: BaseException, phase: str = "broadcast"):
        super().__init__(
            f"Transaction {phase} failed: {cause}",
            metadata={"phase": phase, "cause_type": type(cause).__name__},
        )
        self.cause = cause
        self.phase = phase


class ConfirmationTimeout(PipelineError):
    kind = "ConfirmationTimeout"
    category = ErrorCategory.SUBMISSION

    def __init__(self, transaction_hash: str, timeout_seconds: float):
        super().__init__(
            f"No receipt for {transaction_hash} after {timeout_seconds:g}s",
            metadata={"transaction_hash": transaction_hash, "timeout_seconds": timeout_seconds},
        )
        self.transaction_hash = transaction_hash
        self.timeout_seconds = timeout_seconds
