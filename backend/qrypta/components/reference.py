"""
Reference record builder

The record carries a creation timestamp, so two builds of the same intent
differ only in `created_at`.
"""
from datetime import datetime
from typing import Optional

from qrypta.components.contracts import ReferenceRecord, TransferIntent
from qrypta.utils.datetime_utils import utc_now

DEFAULT_PROJECT = "QRYPTA"
DEFAULT_TITLE = "PQC DEMO"


def build_reference(
    intent: TransferIntent,
    project: str = DEFAULT_PROJECT,
    now: Optional[datetime] = None,
) -> ReferenceRecord:
    return ReferenceRecord(
        project=project,
        title=intent.reference_title,
        chain=intent.chain,
        recipient=intent.recipient,
        amount=intent.amount_human,
        created_at=now or utc_now(),
    )
