"""HTTP helper for Oura API calls.

Single attempt per request: no retry, no backoff. Every non-2xx response
or transport failure is translated into an UpstreamError whose message
names the failure class:
- 400 bad request, 401 expired/invalid token, 403 subscription/forbidden,
  404 not found, 422 validation, 429 rate limited, else generic
- timeouts and connection errors -> "Network Error: ..."
"""

import json
from typing import Any

import httpx
import structlog

from shared.exceptions import UpstreamError
from shared.metrics import upstream_errors_total

logger = structlog.get_logger()


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("detail") or "")
    return ""


def map_status_error(response: httpx.Response) -> UpstreamError:
    """Translate an upstream error response into UpstreamError."""
    status = response.status_code
    try:
        payload = response.json()
    except ValueError:
        payload = response.text[:200]
    message = _error_message(payload)

    if status == 400:
        detail = f"Bad Request: {message or 'Invalid parameters'}"
    elif status == 401:
        detail = "Unauthorized: Access token expired or invalid"
    elif status == 403:
        detail = "Forbidden: User subscription expired or data not available"
    elif status == 404:
        detail = "Not Found: Resource does not exist"
    elif status == 422:
        detail = f"Validation Error: {json.dumps(payload)}"
    elif status == 429:
        detail = "Rate Limit Exceeded: Too many requests"
    else:
        detail = f"Oura API Error: {status} - {message or 'Unknown error'}"
    return UpstreamError(detail, upstream_status=status)


async def fetch_json(
    client: httpx.AsyncClient,
    path: str,
    params: dict[str, Any] | None = None,
    collection: str = "",
) -> dict[str, Any]:
    """GET a JSON document, raising UpstreamError on any failure."""
    try:
        response = await client.get(path, params=params)
    except httpx.HTTPError as exc:
        upstream_errors_total.labels(collection=collection, status="network").inc()
        logger.warning("upstream_request_failed", collection=collection, error=str(exc))
        raise UpstreamError(f"Network Error: {exc}") from exc

    if response.is_success:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        # Collection documents are always objects
        if not isinstance(payload, dict):
            upstream_errors_total.labels(collection=collection, status="invalid_json").inc()
            logger.warning(
                "upstream_request_failed",
                collection=collection,
                status_code=response.status_code,
                error="invalid_json",
            )
            raise UpstreamError(
                f"Oura API Error: {response.status_code} - Invalid JSON response",
                upstream_status=response.status_code,
            )
        return payload

    error = map_status_error(response)
    upstream_errors_total.labels(collection=collection, status=str(response.status_code)).inc()
    logger.warning(
        "upstream_request_failed",
        collection=collection,
        status_code=response.status_code,
        error=error.detail,
    )
    raise error
