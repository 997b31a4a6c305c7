"""
Unit tests for the service-account token provider.

Uses respx to mock the OAuth2 token endpoint (never makes real HTTP
requests) and a simulated clock to drive expiry.

Test categories:
  - Cache: fresh token → zero network calls, identical value returned
  - Refresh: stale token → exactly one exchange, new expiry in the future
  - Assertion: genuine RS256 signature over the expected claims
  - Failure: rejection → AuthError, network → TransientError
"""

from __future__ import annotations

import asyncio
import base64
import json
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
import respx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from gcloud_dns_mcp.adapters.token_provider import (
    DNS_SCOPE,
    JWT_BEARER_GRANT,
    ServiceAccountTokenProvider,
)
from gcloud_dns_mcp.domain.models import ServiceAccountCredential
from gcloud_dns_mcp.errors import AuthError, ConfigError, TransientError
from tests.fakes import CLIENT_EMAIL, TOKEN_URL, FakeClock

# ─────────────────────── Helpers ───────────────────────


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _decode_segment(segment: str) -> dict[str, Any]:
    decoded: dict[str, Any] = json.loads(_b64decode(segment))
    return decoded


def _token_response(value: str = "ya29.token", expires_in: int = 3600) -> httpx.Response:
    return httpx.Response(
        200, json={"access_token": value, "expires_in": expires_in, "token_type": "Bearer"}
    )


@pytest.fixture()
def provider(
    credential: ServiceAccountCredential, clock: FakeClock
) -> ServiceAccountTokenProvider:
    return ServiceAccountTokenProvider(credential, timeout=5, clock=clock)


# ═══════════════════════════════════════════════════════════════════════
# Caching
# ═══════════════════════════════════════════════════════════════════════


class TestTokenCache:
    """
    GIVEN a cached token further than the safety margin from expiry
    WHEN get_token is called
    THEN the cached token is returned without a network call.
    """

    @respx.mock
    def test_fresh_token_served_from_cache(
        self, provider: ServiceAccountTokenProvider, clock: FakeClock
    ) -> None:
        route = respx.post(TOKEN_URL).mock(return_value=_token_response())

        first = asyncio.run(provider.get_token())
        clock.advance(3600 - 61)
        second = asyncio.run(provider.get_token())

        assert route.call_count == 1
        assert second is first

    @respx.mock
    def test_token_at_safety_margin_is_refreshed(
        self, provider: ServiceAccountTokenProvider, clock: FakeClock
    ) -> None:
        """
        GIVEN a cached token exactly 60s (the margin) from expiry
        WHEN get_token is called
        THEN exactly one refresh happens and the new expiry is in the future.
        """
        route = respx.post(TOKEN_URL).mock(
            side_effect=[_token_response("first"), _token_response("second")]
        )

        first = asyncio.run(provider.get_token())
        clock.advance(3600 - 60)
        second = asyncio.run(provider.get_token())

        assert route.call_count == 2
        assert first.value == "first"
        assert second.value == "second"
        assert second.expires_at > clock.now
        assert provider.cached_token is second

    @respx.mock
    def test_expired_token_is_refreshed(
        self, provider: ServiceAccountTokenProvider, clock: FakeClock
    ) -> None:
        route = respx.post(TOKEN_URL).mock(return_value=_token_response(expires_in=120))

        asyncio.run(provider.get_token())
        clock.advance(500)
        token = asyncio.run(provider.get_token())

        assert route.call_count == 2
        assert token.expires_at == pytest.approx(clock.now + 120)

    @respx.mock
    def test_expiry_uses_server_ttl(
        self, provider: ServiceAccountTokenProvider, clock: FakeClock
    ) -> None:
        respx.post(TOKEN_URL).mock(return_value=_token_response(expires_in=1800))
        token = asyncio.run(provider.get_token())
        assert token.expires_at == pytest.approx(clock.now + 1800)

    @respx.mock
    def test_concurrent_refreshes_leave_a_valid_token(
        self, provider: ServiceAccountTokenProvider
    ) -> None:
        """
        GIVEN an empty cache and two concurrent callers
        WHEN both call get_token at once
        THEN both receive a token and the cache holds one of them.
        """
        respx.post(TOKEN_URL).mock(return_value=_token_response())

        async def both() -> list[Any]:
            return list(await asyncio.gather(provider.get_token(), provider.get_token()))

        tokens = asyncio.run(both())
        assert all(t.value == "ya29.token" for t in tokens)
        assert provider.cached_token in tokens


# ═══════════════════════════════════════════════════════════════════════
# Signed assertion
# ═══════════════════════════════════════════════════════════════════════


class TestAssertion:
    """The JWT sent to the token endpoint is a real RS256 assertion."""

    @respx.mock
    def test_posts_jwt_bearer_grant(
        self,
        provider: ServiceAccountTokenProvider,
        rsa_key: RSAPrivateKey,
        clock: FakeClock,
    ) -> None:
        """
        GIVEN a provider for a service account
        WHEN a token is fetched
        THEN the form body carries the jwt-bearer grant and a verifiable assertion.
        """
        route = respx.post(TOKEN_URL).mock(return_value=_token_response())
        asyncio.run(provider.get_token())

        form = parse_qs(route.calls.last.request.content.decode())
        assert form["grant_type"] == [JWT_BEARER_GRANT]

        header_b64, claims_b64, signature_b64 = form["assertion"][0].split(".")
        rsa_key.public_key().verify(
            _b64decode(signature_b64),
            f"{header_b64}.{claims_b64}".encode("ascii"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )

        header = _decode_segment(header_b64)
        assert header == {"alg": "RS256", "typ": "JWT", "kid": "key-123"}

        claims = _decode_segment(claims_b64)
        now = int(clock.now)
        assert claims == {
            "iss": CLIENT_EMAIL,
            "scope": DNS_SCOPE,
            "aud": TOKEN_URL,
            "iat": now,
            "exp": now + 3600,
        }

    def test_assertion_without_key_id_omits_kid(
        self, credential: ServiceAccountCredential, clock: FakeClock
    ) -> None:
        bare = ServiceAccountCredential(
            client_email=credential.client_email,
            private_key=credential.private_key,
        )
        provider = ServiceAccountTokenProvider(bare, clock=clock)
        header = _decode_segment(provider.build_assertion(int(clock.now)).split(".")[0])
        assert "kid" not in header


# ═══════════════════════════════════════════════════════════════════════
# Failures
# ═══════════════════════════════════════════════════════════════════════


class TestTokenFailures:
    """
    GIVEN the token endpoint rejects us or is unreachable
    WHEN get_token is called
    THEN a classified error is raised and nothing is cached.
    """

    @respx.mock
    def test_rejection_raises_auth_error_with_raw_message(
        self, provider: ServiceAccountTokenProvider
    ) -> None:
        respx.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Invalid JWT Signature."}
            )
        )
        with pytest.raises(AuthError, match="Invalid JWT Signature") as exc_info:
            asyncio.run(provider.get_token())
        assert exc_info.value.status == 400
        assert provider.cached_token is None

    @respx.mock
    def test_missing_access_token_raises_auth_error(
        self, provider: ServiceAccountTokenProvider
    ) -> None:
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"token_type": "Bearer"}))
        with pytest.raises(AuthError, match="Malformed token response"):
            asyncio.run(provider.get_token())

    @respx.mock
    def test_network_error_raises_transient_error(
        self, provider: ServiceAccountTokenProvider
    ) -> None:
        respx.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("connection refused"))
        with pytest.raises(TransientError, match="unreachable") as exc_info:
            asyncio.run(provider.get_token())
        assert exc_info.value.retryable is True

    def test_safety_margin_below_minimum_is_config_error(
        self, credential: ServiceAccountCredential
    ) -> None:
        with pytest.raises(ConfigError, match="at least 60s"):
            ServiceAccountTokenProvider(credential, safety_margin=30)
