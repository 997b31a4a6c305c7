"""
Token adapter — OAuth2 JWT-bearer exchange for a service account.

Implements the TokenSource port using httpx for async HTTP calls.

Authentication flow:
  1. Build a JWT assertion (iss, scope, aud, iat, exp) for the service account
  2. Sign header.payload with RS256 using the account's RSA private key
  3. POST the assertion to the token endpoint → access_token + expires_in
  4. Cache the token until it is within the safety margin of expiring

The cache is a single field on the provider instance. Concurrent callers
that both see a stale token may both refresh; the last one to finish wins.
"""

from __future__ import annotations

import base64
import json
import time
from collections.abc import Callable
from typing import Any

import httpx
import structlog
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from gcloud_dns_mcp.adapters.credentials import load_signing_key
from gcloud_dns_mcp.domain.models import AccessToken, ServiceAccountCredential
from gcloud_dns_mcp.errors import AuthError, ConfigError, TransientError

log = structlog.get_logger()

DNS_SCOPE = "https://www.googleapis.com/auth/ndev.clouddns.readwrite"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600
MIN_SAFETY_MARGIN_SECONDS = 60


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_json(obj: dict[str, Any]) -> str:
    return _b64url(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


class ServiceAccountTokenProvider:
    """
    Exchange service-account credentials for short-lived bearer tokens.

    Implements the TokenSource port. The hot path (fresh cached token)
    performs no I/O and touches no state.
    """

    def __init__(
        self,
        credential: ServiceAccountCredential,
        scope: str = DNS_SCOPE,
        safety_margin: float = MIN_SAFETY_MARGIN_SECONDS,
        timeout: float = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if safety_margin < MIN_SAFETY_MARGIN_SECONDS:
            raise ConfigError(
                f"Token safety margin must be at least {MIN_SAFETY_MARGIN_SECONDS}s, "
                f"got {safety_margin}"
            )
        self._credential = credential
        self._signing_key = load_signing_key(credential)
        self._scope = scope
        self._safety_margin = safety_margin
        self._timeout = timeout
        self._clock = clock
        self._cached: AccessToken | None = None

    @property
    def cached_token(self) -> AccessToken | None:
        return self._cached

    async def get_token(self) -> AccessToken:
        """
        Return a bearer token that stays valid for at least the safety margin.

        Uses the cached token when fresh; otherwise signs a new assertion and
        exchanges it at the token endpoint. Raises AuthError if the endpoint
        rejects the assertion and TransientError on network failure.
        """
        cached = self._cached
        if cached is not None and cached.is_fresh(self._clock(), self._safety_margin):
            return cached

        token = await self._refresh()
        self._cached = token
        return token

    def build_assertion(self, now: int) -> str:
        """Create the signed RS256 JWT presented to the token endpoint."""
        header: dict[str, Any] = {"alg": "RS256", "typ": "JWT"}
        if self._credential.private_key_id:
            header["kid"] = self._credential.private_key_id
        claims = {
            "iss": self._credential.client_email,
            "scope": self._scope,
            "aud": self._credential.token_uri,
            "iat": now,
            "exp": now + ASSERTION_LIFETIME_SECONDS,
        }
        signing_input = f"{_b64url_json(header)}.{_b64url_json(claims)}"
        signature = self._signing_key.sign(
            signing_input.encode("ascii"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
        return f"{signing_input}.{_b64url(signature)}"

    async def _refresh(self) -> AccessToken:
        now = self._clock()
        assertion = self.build_assertion(int(now))
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._credential.token_uri,
                    data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                )
        except httpx.TransportError as e:
            log.warning("access_token.network_error", error=str(e))
            raise TransientError(f"Token endpoint unreachable: {e}") from e

        if not response.is_success:
            log.warning("access_token.rejected", status=response.status_code)
            raise AuthError(
                f"Failed to get access token: {response.text or response.reason_phrase}",
                status=response.status_code,
            )

        try:
            payload = response.json()
            value = payload["access_token"]
            expires_in = float(payload.get("expires_in", ASSERTION_LIFETIME_SECONDS))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(f"Malformed token response: {response.text[:200]}") from e

        token = AccessToken(value=value, expires_at=now + expires_in)
        log.info(
            "access_token.acquired",
            client_email=self._credential.client_email,
            expires_in=expires_in,
        )
        return token
