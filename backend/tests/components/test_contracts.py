"""
Tests for stage data contracts
"""
import pytest

from qrypta.components.contracts import HexData, ProveRequest, SubmissionResult
from qrypta.core.chains import ChainKey


def test_hexdata_prefix_is_optional():
    assert HexData.from_hex("0xABcd") == HexData.from_hex("abcd") == b"\xab\xcd"
    assert HexData.from_hex("abcd").to_hex() == "0xabcd"
    assert str(HexData.from_hex("0X01")) == "0x01"
    assert HexData.from_hex("0x") == b""


@pytest.mark.parametrize("value", ["0x1", "0xzz", "12 34", "0x0x12", None, 12])
def test_hexdata_rejects_malformed(value):
    with pytest.raises(ValueError):
        HexData.from_hex(value)


def test_hexdata_shorten():
    data = HexData.from_hex("ab" * 32)
    assert data.shorten() == "0x" + "ab" * 8 + "…"
    assert HexData.from_hex("0x01").shorten() == "0x01"


def test_prove_request_payload():
    request = ProveRequest(
        chain=ChainKey.BNB,
        recipient="0x" + "a" * 40,
        amount_wei=10 ** 18,
        iso_reference="{}",
        deadline_minutes=30,
    )
    assert request.to_payload() == {
        "chain": "bnb",
        "recipient": "0x" + "a" * 40,
        "amount": "1000000000000000000",
        "isoReference": "{}",
        "fake": False,
        "deadlineMinutes": 30,
    }
    assert "deadlineMinutes" not in request.model_copy(update={"deadline_minutes": None}).to_payload()


@pytest.mark.parametrize(
    "status, label",
    [(1, "success"), (0, "reverted"), ("success", "success"), ("reverted", "reverted")],
)
def test_submission_status_is_kept_verbatim(status, label):
    result = SubmissionResult(
        transaction_hash="0x01", status=status, block_number=1, gas_used=1, amount_wei=1
    )
    assert result.status == status
    assert result.status_label == label
    assert result.succeeded is (label == "success")
