"""
Credential adapter — parse service-account key material.

Accepts the value of GOOGLE_CLOUD_CREDENTIALS, which is either the key JSON
itself or a path to a key file. Everything is validated up front so that a
bad credential fails with ConfigError before any token exchange is tried:

  1. Resolve file path → JSON text
  2. Decode JSON object
  3. Require client_email and private_key
  4. Load the PEM key and require RSA (RS256 needs it)
"""

from __future__ import annotations

import json
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from gcloud_dns_mcp.domain.models import DEFAULT_TOKEN_URI, ServiceAccountCredential
from gcloud_dns_mcp.errors import ConfigError


def load_service_account(raw: str) -> ServiceAccountCredential:
    """
    Build a ServiceAccountCredential from JSON text or a key file path.

    Raises ConfigError on empty input, unreadable file, malformed JSON,
    missing fields, or a private key that is not a valid RSA PEM.
    """
    text = _resolve_text(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError("GOOGLE_CLOUD_CREDENTIALS must be a valid JSON string") from e
    if not isinstance(data, dict):
        raise ConfigError("GOOGLE_CLOUD_CREDENTIALS must be a JSON object")

    missing = [k for k in ("client_email", "private_key") if not data.get(k)]
    if missing:
        raise ConfigError(
            "Service account credentials are missing required field(s): " + ", ".join(missing)
        )

    credential = ServiceAccountCredential(
        client_email=data["client_email"],
        private_key=data["private_key"],
        private_key_id=data.get("private_key_id"),
        token_uri=data.get("token_uri") or DEFAULT_TOKEN_URI,
        project_id=data.get("project_id"),
    )
    # A broken key is a ConfigError at load time
    load_signing_key(credential)
    return credential


def load_signing_key(credential: ServiceAccountCredential) -> RSAPrivateKey:
    """Load the credential's PEM private key; it must be an unencrypted RSA key."""
    try:
        key = serialization.load_pem_private_key(
            credential.private_key.encode("utf-8"), password=None
        )
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Service account private_key is not a valid PEM key: {e}") from e
    if not isinstance(key, RSAPrivateKey):
        raise ConfigError("Service account private_key must be an RSA key for RS256 signing")
    return key


def _resolve_text(raw: str) -> str:
    value = raw.strip() if raw else ""
    if not value:
        raise ConfigError(
            "Google Cloud service account credentials are required. "
            "Set the GOOGLE_CLOUD_CREDENTIALS environment variable."
        )
    if value.startswith("{"):
        return value
    path = Path(value).expanduser()
    try:
        is_file = path.is_file()
    except (OSError, ValueError):
        is_file = False
    if is_file:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read credentials file {path}: {e}") from e
    # Neither a JSON object nor an existing file; let the JSON decoder report it
    return value
