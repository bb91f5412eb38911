"""
Data contracts passed between pipeline stages.

Each stage consumes one of these and produces the next; all of them are
immutable once built.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from qrypta.core.chains import ChainKey
from qrypta.utils.datetime_utils import utc_iso_millis

_HEX_DIGITS = re.compile(r"^[0-9a-fA-F]*$")


class HexData(bytes):
    """Byte string that can only be built from well-formed hex"""

    @classmethod
    def from_hex(cls, value: str) -> "HexData":
        if not isinstance(value, str):
            raise ValueError(f"expected hex string, got {type(value).__name__}")
        text = value.strip()
        if text[:2] in ("0x", "0X"):
            text = text[2:]
        if len(text) % 2 or not _HEX_DIGITS.match(text):
            raise ValueError(f"malformed hex: {value!r}")
        return cls(bytes.fromhex(text))

    def to_hex(self) -> str:
        return "0x" + self.hex()

    def shorten(self, length: int = 18) -> str:
        text = self.to_hex()
        return text if len(text) <= length else f"{text[:length]}…"

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"HexData({self.to_hex()!r})"


class TransferIntent(BaseModel):
    """Validated transfer request (see qrypta.components.validation)"""
    model_config = ConfigDict(frozen=True)

    chain: ChainKey
    recipient: str
    amount_human: str
    reference_title: str


class ReferenceRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str
    title: str
    chain: ChainKey
    recipient: str
    amount: str
    created_at: datetime

    def serialize(self) -> str:
        """Compact JSON in fixed key order; embedded verbatim in the contract call"""
        return json.dumps(
            {
                "project": self.project,
                "title": self.title,
                "chain": self.chain.value,
                "recipient": self.recipient,
                "amount": self.amount,
                "ts": utc_iso_millis(self.created_at),
            },
            separators=(",", ":"),
            ensure_ascii=False,
        )


class ProveRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain: ChainKey
    recipient: str
    amount_wei: int = Field(..., ge=0)
    iso_reference: str
    fake: bool = False
    deadline_minutes: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for POST /prove"""
        payload: Dict[str, Any] = {
            "chain": self.chain.value,
            "recipient": self.recipient,
            "amount": str(self.amount_wei),
            "isoReference": self.iso_reference,
            "fake": self.fake,
        }
        if self.deadline_minutes is not None:
            payload["deadlineMinutes"] = self.deadline_minutes
        return payload


class ProofBundle(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    public_values: HexData
    proof_bytes: HexData
    iso_ref_hash: Optional[HexData] = None
    deadline: Optional[int] = None


class SubmissionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain: ChainKey
    rpc_url: str
    contract_address: str
    signing_credential: SecretStr
    recipient: str
    amount_human: str
    proof: ProofBundle
    iso_reference: str
    decimals: int = 18


class SubmissionResult(BaseModel):
    """Receipt fields as returned by the node; status is not reinterpreted"""
    model_config = ConfigDict(frozen=True)

    transaction_hash: str
    status: Union[int, str]
    block_number: int
    gas_used: int
    effective_gas_price: Optional[int] = None
    log_count: int = 0
    amount_wei: int

    @property
    def status_label(self) -> str:
        if isinstance(self.status, int):
            return {1: "success", 0: "reverted"}.get(self.status, str(self.status))
        return str(self.status)

    @property
    def succeeded(self) -> bool:
        return self.status_label == "success"
