"""
Tests for the proving service client
"""
import json

import httpx
import pytest

from conftest import RECIPIENT
from qrypta.components.contracts import ProveRequest
from qrypta.core.chains import ChainKey
from qrypta.core.errors import MalformedProverResponse, ProverServiceError
from qrypta.services.prover_client import ProverClient, parse_proof_response


@pytest.fixture
def prove_request():
    return ProveRequest(
        chain=ChainKey.ETH,
        recipient=RECIPIENT,
        amount_wei=2_500_000_000_000_000_000,
        iso_reference='{"project":"QRYPTA"}',
        fake=True,
        deadline_minutes=30,
    )


def client_returning(response: httpx.Response, seen: list = None) -> ProverClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return response

    return ProverClient("http://prover.test/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_request_proof_posts_intent_and_normalizes_hex(prove_request):
    seen = []
    client = client_returning(
        httpx.Response(200, json={"publicValues": "01", "proofBytes": "0x02", "isoRefHash": "ff", "deadline": 1700000000}),
        seen,
    )

    bundle = await client.request_proof(prove_request)

    assert bundle.public_values.to_hex() == "0x01"
    assert bundle.proof_bytes.to_hex() == "0x02"
    assert bundle.iso_ref_hash.to_hex() == "0xff"
    assert bundle.deadline == 1700000000

    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "http://prover.test/prove"
    assert json.loads(request.content) == {
        "chain": "eth",
        "recipient": RECIPIENT,
        "amount": "2500000000000000000",
        "isoReference": '{"project":"QRYPTA"}',
        "fake": True,
        "deadlineMinutes": 30,
    }


@pytest.mark.asyncio
async def test_non_2xx_raises_prover_service_error(prove_request):
    client = client_returning(httpx.Response(500, text="prover exploded"))

    with pytest.raises(ProverServiceError) as exc:
        await client.request_proof(prove_request)

    assert exc.value.status == 500
    assert exc.value.body == "prover exploded"
    assert "500" in str(exc.value)


@pytest.mark.asyncio
async def test_transport_failure_raises_prover_service_error(prove_request):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = ProverClient("http://prover.test", transport=httpx.MockTransport(handler))

    with pytest.raises(ProverServiceError) as exc:
        await client.request_proof(prove_request)
    assert exc.value.status is None
    assert "connection refused" in exc.value.body


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"publicValues": "0x01"},
        {"proofBytes": "0x02"},
        {"publicValues": "", "proofBytes": "0x02"},
        {"publicValues": "0x01", "proofBytes": "0xnothex"},
        {"publicValues": "0x01", "proofBytes": "0x02", "isoRefHash": "xyz"},
        ["0x01", "0x02"],
    ],
)
async def test_malformed_2xx_bodies(prove_request, body):
    client = client_returning(httpx.Response(200, json=body))

    with pytest.raises(MalformedProverResponse):
        await client.request_proof(prove_request)


@pytest.mark.asyncio
async def test_non_json_2xx_body(prove_request):
    client = client_returning(httpx.Response(200, text="<html>ok</html>"))

    with pytest.raises(MalformedProverResponse):
        await client.request_proof(prove_request)


def test_missing_proof_bytes_never_yields_partial_bundle():
    with pytest.raises(MalformedProverResponse):
        parse_proof_response({"publicValues": "0x01", "isoRefHash": "0x03"})


def test_optional_fields():
    bundle = parse_proof_response({"publicValues": "0x01", "proofBytes": "0x02", "deadline": "soon"})
    assert bundle.iso_ref_hash is None
    assert bundle.deadline is None


@pytest.mark.parametrize(
    "deadline,expected",
    [(1700000000, 1700000000), (1700000000.0, 1700000000), (1700000000.5, None), (True, None), (None, None)],
)
def test_numeric_deadline(deadline, expected):
    bundle = parse_proof_response({"publicValues": "0x01", "proofBytes": "0x02", "deadline": deadline})
    assert bundle.deadline == expected
    assert bundle.deadline is None or type(bundle.deadline) is int


@pytest.mark.asyncio
async def test_float_deadline_from_http_body(prove_request):
    client = client_returning(
        httpx.Response(200, content=b'{"publicValues": "0x01", "proofBytes": "0x02", "deadline": 1700000000.0}')
    )

    bundle = await client.request_proof(prove_request)

    assert bundle.deadline == 1700000000
