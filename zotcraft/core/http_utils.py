"""Translation of httpx failures into the sync error taxonomy."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from zotcraft.core.backoff import RETRYABLE_STATUS_CODES
from zotcraft.domain.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


def upstream_error_from_transport(
    exc: httpx.HTTPError, *, service: str, base_url: str
) -> UpstreamUnavailableError:
    """Map a transport-level failure (no HTTP response) to ``UpstreamUnavailableError``."""
    if isinstance(exc, httpx.TimeoutException):
        message = f"{service}: Connection timed out. The server may be slow."
    else:
        message = f"{service}: Cannot connect to {base_url}: {exc}"
    return UpstreamUnavailableError(message, service=service.lower())


def upstream_error_from_response(
    response: httpx.Response, *, service: str, what: str
) -> UpstreamUnavailableError:
    """Map a non-2xx read response to ``UpstreamUnavailableError`` with its status text."""
    reason = response.reason_phrase or f"HTTP {response.status_code}"
    return UpstreamUnavailableError(
        f"Failed to fetch {what}: {reason}",
        service=service.lower(),
        status_code=response.status_code,
    )


def is_retryable_upstream_error(exc: Exception) -> bool:
    """Network failures and 408/429/5xx responses are worth retrying."""
    if not isinstance(exc, UpstreamUnavailableError):
        return False
    return exc.status_code is None or exc.status_code in RETRYABLE_STATUS_CODES


def decode_json(response: httpx.Response, *, service: str, what: str) -> Any:
    """Decode a successful read response; a body that is not JSON is an upstream failure."""
    try:
        return response.json()
    except ValueError as exc:
        logger.warning(
            "upstream_invalid_json",
            extra={"service": service.lower(), "status_code": response.status_code},
        )
        raise UpstreamUnavailableError(
            f"Failed to fetch {what}: response is not valid JSON",
            service=service.lower(),
            status_code=response.status_code,
        ) from exc
