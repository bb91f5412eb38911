"""
Client for the external proving service

One POST per call. No retries and no caching: retrying is a new pipeline run.
"""
from typing import Any, Optional

import httpx

from qrypta.components.contracts import HexData, ProofBundle, ProveRequest
from qrypta.core.errors import MalformedProverResponse, ProverServiceError
from qrypta.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


def _hex_field(data: dict, name: str) -> HexData:
    try:
        return HexData.from_hex(str(data[name]))
    except ValueError as e:
        raise MalformedProverResponse(
            f"Invalid prover response: {name} is not hex ({e})",
            metadata={"field": name},
        ) from e


def _deadline(value: Any) -> Optional[int]:
    """Unix deadline; integral floats such as 1700000000.0 are accepted"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_proof_response(data: Any) -> ProofBundle:
    """
    Validate a decoded prover response and normalize it into a ProofBundle

    Args:
        data: Decoded JSON body of a 2xx response

    Returns:
        ProofBundle with 0x-prefixed hex values

    Raises:
        MalformedProverResponse: required field missing or not hex
    """
    if not isinstance(data, dict):
        raise MalformedProverResponse(
            "Invalid prover response: expected a JSON object",
            metadata={"type": type(data).__name__},
        )
    if not data.get("publicValues") or not data.get("proofBytes"):
        raise MalformedProverResponse(
            "Invalid prover response: expected { publicValues, proofBytes }",
            metadata={"keys": sorted(data.keys())},
        )

    deadline = _deadline(data.get("deadline"))

    return ProofBundle(
        public_values=_hex_field(data, "publicValues"),
        proof_bytes=_hex_field(data, "proofBytes"),
        iso_ref_hash=_hex_field(data, "isoRefHash") if data.get("isoRefHash") else None,
        deadline=deadline,
    )


class ProverClient:
    """
    Async client for POST {base_url}/prove

    Args:
        base_url: Proving service base URL (trailing slash optional)
        timeout_seconds: HTTP timeout for the whole request
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.strip().rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/prove"

    async def request_proof(self, request: ProveRequest) -> ProofBundle:
        payload = request.to_payload()
        logger.info(
            f"Requesting proof from {self.endpoint}",
            extra={"chain": request.chain.value, "fake": request.fake},
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=payload)
        except httpx.RequestError as e:
            logger.warning(f"Prover request failed: {e!r}")
            raise ProverServiceError(None, str(e) or type(e).__name__) from e

        if not response.is_success:
            body = response.text or response.reason_phrase
            logger.warning(
                f"Prover returned HTTP {response.status_code}",
                extra={"status": response.status_code},
            )
            raise ProverServiceError(response.status_code, body)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedProverResponse(
                "Invalid prover response: body is not JSON",
                metadata={"body": response.text[:200]},
            ) from e

        bundle = parse_proof_response(data)
        logger.info(
            "Proof received",
            extra={
                "public_values_len": len(bundle.public_values),
                "proof_bytes_len": len(bundle.proof_bytes),
            },
        )
        return bundle
