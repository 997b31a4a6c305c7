"""
HTTP adapter — authenticated JSON calls to the Cloud DNS v1 API via httpx.

Adapter layer — implements the ApiTransport port.

Every call:
  1. Asks the TokenSource for a bearer token (cached on the hot path)
  2. Sends {base_url}/{project_id}{endpoint} with Authorization: Bearer
  3. Returns the decoded JSON body, or raises a classified DnsError

Error responses from Google APIs look like:

    {"error": {"code": 404, "message": "...", "errors": [{"reason": "notFound"}]}}

When the body is not JSON the HTTP reason phrase is used instead.
No retries happen here: a failed call is reported once and the caller
decides what to do.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from gcloud_dns_mcp import __version__
from gcloud_dns_mcp.domain.ports import TokenSource
from gcloud_dns_mcp.errors import (
    ApiError,
    AuthError,
    ConflictError,
    DnsError,
    NotFoundError,
    QuotaError,
    TransientError,
)

log = structlog.get_logger()

DEFAULT_BASE_URL = "https://dns.googleapis.com/dns/v1/projects"

QUOTA_REASONS = frozenset(
    {"rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded", "dailyLimitExceeded"}
)


def _parse_error_body(response: httpx.Response) -> tuple[str, str | None]:
    """Extract (message, reason) from a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}", None

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        message = error.get("message") or response.reason_phrase
        details = error.get("errors") or []
        reason = details[0].get("reason") if details and isinstance(details[0], dict) else None
        return message, reason
    if isinstance(error, str):
        # OAuth-style {"error": "invalid_grant", "error_description": "..."}
        return body.get("error_description") or error, error
    if isinstance(body, dict) and body.get("message"):
        return body["message"], None
    return response.reason_phrase or f"HTTP {response.status_code}", None


def raise_for_api_error(response: httpx.Response) -> None:
    """Raise the DnsError subclass matching a non-success response."""
    if response.is_success:
        return

    status = response.status_code
    message, reason = _parse_error_body(response)

    error_cls: type[DnsError]
    if status == 401:
        error_cls = AuthError
    elif status == 403:
        error_cls = QuotaError if reason in QUOTA_REASONS else AuthError
    elif status == 404:
        error_cls = NotFoundError
    elif status in (409, 412):
        error_cls = ConflictError
    elif status == 429:
        error_cls = QuotaError
    elif status >= 500:
        error_cls = TransientError
    else:
        error_cls = ApiError

    raise error_cls(message, status=status, reason=reason)


class GoogleDnsTransport:
    """
    Perform authenticated requests against the Cloud DNS REST API.

    Implements the ApiTransport port. One short-lived AsyncClient is opened
    per call with the configured timeout.
    """

    def __init__(
        self,
        project_id: str,
        token_source: TokenSource,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60,
    ) -> None:
        self._project_id = project_id
        self._token_source = token_source
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def url_for(self, endpoint: str) -> str:
        return f"{self._base_url}/{self._project_id}{endpoint}"

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Send one request and return the decoded JSON response.

        Raises AuthError, NotFoundError, ConflictError, QuotaError,
        TransientError or ApiError depending on the response status.
        """
        token = await self._token_source.get_token()
        url = self.url_for(endpoint)
        headers = {
            "Authorization": f"Bearer {token.value}",
            "Content-Type": "application/json",
            "User-Agent": f"gcloud-dns-mcp/{__version__}",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method, url, headers=headers, params=params, json=body
                )
        except httpx.TransportError as e:
            log.warning("dns.network_error", method=method, endpoint=endpoint, error=str(e))
            raise TransientError(f"Cloud DNS API unreachable: {e}") from e

        if not response.is_success:
            log.warning(
                "dns.request_failed",
                method=method,
                endpoint=endpoint,
                status=response.status_code,
            )
            raise_for_api_error(response)

        log.debug("dns.request", method=method, endpoint=endpoint, status=response.status_code)
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            log.warning("dns.invalid_response", method=method, endpoint=endpoint)
            raise ApiError(
                "Unexpected non-JSON response from Cloud DNS API",
                status=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise ApiError(
                "Unexpected non-object JSON response from Cloud DNS API",
                status=response.status_code,
            )
        return data
