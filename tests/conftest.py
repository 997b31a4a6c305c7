"""
Shared test fixtures for the gcloud-dns-mcp test suite.

Provides a freshly generated RSA service-account key (so RS256 signatures
can be verified for real), a simulated clock whose sleep advances time
instead of blocking, and a static token source for transport tests.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from gcloud_dns_mcp.domain.models import ServiceAccountCredential
from tests.fakes import CLIENT_EMAIL, PROJECT_ID, TOKEN_URL, FakeClock, StaticTokenSource


@pytest.fixture(scope="session")
def rsa_key() -> RSAPrivateKey:
    """One 2048-bit RSA key per session (generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key: RSAPrivateKey) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture()
def service_account_info(private_key_pem: str) -> dict[str, Any]:
    """A service-account key file's contents, as Google issues them."""
    return {
        "type": "service_account",
        "project_id": PROJECT_ID,
        "private_key_id": "key-123",
        "private_key": private_key_pem,
        "client_email": CLIENT_EMAIL,
        "token_uri": TOKEN_URL,
    }


@pytest.fixture()
def service_account_json(service_account_info: dict[str, Any]) -> str:
    return json.dumps(service_account_info)


@pytest.fixture()
def credential(private_key_pem: str) -> ServiceAccountCredential:
    return ServiceAccountCredential(
        client_email=CLIENT_EMAIL,
        private_key=private_key_pem,
        private_key_id="key-123",
        token_uri=TOKEN_URL,
        project_id=PROJECT_ID,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def token_source() -> StaticTokenSource:
    return StaticTokenSource()
