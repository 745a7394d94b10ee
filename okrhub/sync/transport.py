"""HTTP delivery of signed batches to LinkHub's ingest API."""

from __future__ import annotations

import httpx

from ..errors import TransportError
from ..schemas.sync import BatchIngestResponse
from ..signing import build_headers

INGEST_BATCH_PATH = "/ingest/okr/v1/batch"


def batch_url(endpoint_url: str) -> str:
    return f"{endpoint_url.rstrip('/')}{INGEST_BATCH_PATH}"


async def send_batch(
    endpoint_url: str,
    api_key_prefix: str,
    signing_secret: str,
    body: bytes,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> BatchIngestResponse:
    """POST ``body`` exactly as given and parse the batch response.

    Raises:
        TransportError: on network failure, timeout, non-2xx status or a
            response body that is not a batch ingest result.
    """
    headers = build_headers(body, api_key_prefix, signing_secret)
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout)
    try:
        resp = await http.post(batch_url(endpoint_url), content=body, headers=headers)
    except httpx.TimeoutException as exc:
        raise TransportError(f"Timed out sending batch to LinkHub: {exc}") from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"Batch request to LinkHub failed: {exc}") from exc
    finally:
        if owns_client:
            await http.aclose()

    if not resp.is_success:
        raise TransportError(f"HTTP {resp.status_code}: {resp.text[:500]}", status_code=resp.status_code)

    try:
        return BatchIngestResponse.model_validate(resp.json())
    except ValueError as exc:
        raise TransportError(f"Unparseable LinkHub response: {exc}") from exc
