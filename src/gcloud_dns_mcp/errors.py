"""
Error taxonomy — every failure the DNS client can surface.

Each error carries a structured ErrorCode, the provider-supplied message,
and — once it has crossed the client boundary — the operation and target
it was raised for.

Classification:
  - ConfigError       → missing/malformed project id or credentials (fatal)
  - ValidationError   → bad tool input, rejected before any network call
  - PolicyError       → locally enforced rule (e.g. NS/SOA deletion)
  - AuthError         → token exchange or API rejected our identity
  - NotFoundError     → zone, record or change absent
  - ConflictError     → duplicate record, CNAME collision, stale precondition
  - ApiError          → any other non-success API response
  - TransientError    → 5xx or network failure; caller may retry later
  - QuotaError        → rate/quota exceeded; caller may retry later
  - ChangeTimeoutError→ polling gave up; the change may still complete

Nothing in this package retries automatically except change polling.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorCode(Enum):
    """Structured error codes carried by every DnsError."""

    # --- Rejected because of the request; retrying unchanged will not help ---
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BUSINESS_RULE_ERROR = "BUSINESS_RULE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"

    # --- Missing or malformed project id / credentials ---
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # --- The same call may succeed later ---
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    SERVICE_UNAVAILABLE_ERROR = "SERVICE_UNAVAILABLE_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"


class DnsError(Exception):
    """
    Base class for all errors raised by gcloud_dns_mcp.

    `annotate()` attaches the operation and target the first time the error
    crosses the client boundary; the class, status and provider message are
    never altered.
    """

    code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.reason = reason
        self.operation: str | None = None
        self.target: str | None = None

    def annotate(self, operation: str, target: str | None = None) -> DnsError:
        """Record where the error happened. Keeps the innermost annotation."""
        if self.operation is None:
            self.operation = operation
            self.target = target
        return self

    def __str__(self) -> str:
        detail = self.message
        if self.status is not None:
            detail = f"{self.message} (HTTP {self.status})"
        if self.operation is None:
            return detail
        if self.target is None:
            return f"Failed to {self.operation}: {detail}"
        return f"Failed to {self.operation} '{self.target}': {detail}"


class ConfigError(DnsError):
    code = ErrorCode.CONFIGURATION_ERROR


class ValidationError(DnsError):
    code = ErrorCode.VALIDATION_ERROR


class PolicyError(DnsError):
    code = ErrorCode.BUSINESS_RULE_ERROR


class AuthError(DnsError):
    code = ErrorCode.AUTHENTICATION_ERROR


class NotFoundError(DnsError):
    code = ErrorCode.NOT_FOUND


class ConflictError(DnsError):
    code = ErrorCode.CONFLICT


class ApiError(DnsError):
    code = ErrorCode.EXTERNAL_SERVICE_ERROR


class TransientError(DnsError):
    code = ErrorCode.SERVICE_UNAVAILABLE_ERROR
    retryable = True


class QuotaError(TransientError):
    code = ErrorCode.RATE_LIMIT_ERROR


class ChangeTimeoutError(DnsError):
    """
    Raised when a change did not reach `done` within the polling bound.

    This is a client-side give-up, not a remote rejection: the change may
    still be applied later, so callers must re-query to learn the outcome.
    """

    code = ErrorCode.TIMEOUT_ERROR
    retryable = True

    def __init__(self, zone: str, change_id: str, elapsed_ms: int, timeout_ms: int) -> None:
        super().__init__(
            f"Change '{change_id}' in zone '{zone}' did not complete within "
            f"{timeout_ms}ms (waited {elapsed_ms}ms); it may still complete later"
        )
        self.zone = zone
        self.change_id = change_id
        self.elapsed_ms = elapsed_ms
        self.timeout_ms = timeout_ms
