"""
Ports — Protocol-based interfaces between the layers of the DNS client.

Each port is a Protocol (structural typing) so adapters and test doubles
satisfy the contract simply by implementing the methods — no inheritance.

  TokenSource   → hands out a valid bearer token (cached or refreshed)
  ApiTransport  → performs one authenticated JSON call against Cloud DNS
  ChangeSource  → fetches the current state of a submitted change
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from gcloud_dns_mcp.domain.models import AccessToken, Change


@runtime_checkable
class TokenSource(Protocol):
    """
    Port: obtain a bearer token for the Cloud DNS API.

    Implementations return the cached token while it is fresh and refresh
    it otherwise. Raises AuthError when the token endpoint rejects us.
    """

    async def get_token(self) -> AccessToken: ...


@runtime_checkable
class ApiTransport(Protocol):
    """
    Port: one authenticated request against `{base_url}/{project}{endpoint}`.

    Returns the decoded JSON body. Non-success responses are raised as the
    matching DnsError subclass.
    """

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]: ...


@runtime_checkable
class ChangeSource(Protocol):
    """Port: observe a change's status. Used by the change waiter."""

    async def get_change(self, zone: str, change_id: str) -> Change: ...
