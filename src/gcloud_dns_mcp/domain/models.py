"""
Domain models — immutable mirrors of Cloud DNS resources and auth material.

These are pure value objects with no behavior beyond (de)serialization.
Remote state is only ever fetched, never mutated locally: a fresh poll of a
change produces a new Change value rather than updating an existing one.

All models are frozen dataclasses. `from_api` accepts the camelCase JSON
returned by the Cloud DNS v1 API; `to_api` produces it where a model is
sent back (record sets inside a change).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class ChangeStatus(StrEnum):
    PENDING = "pending"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ServiceAccountCredential:
    """
    Service-account key material used to sign token assertions.

    Loaded once from the credential JSON and owned by the token provider.
    The PEM private key is kept out of repr so it never reaches a log line.
    """

    client_email: str
    private_key: str = field(repr=False)
    private_key_id: str | None = None
    token_uri: str = DEFAULT_TOKEN_URI
    project_id: str | None = None


@dataclass(frozen=True, slots=True)
class AccessToken:
    """
    A bearer token and the absolute instant (epoch seconds) it expires.

    Replaced wholesale on refresh — never mutated in place.
    """

    value: str = field(repr=False)
    expires_at: float

    def is_fresh(self, now: float, safety_margin: float) -> bool:
        return now < self.expires_at - safety_margin


@dataclass(frozen=True, slots=True)
class DnssecConfig:
    state: str = "off"
    kind: str | None = None
    non_existence: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DnssecConfig:
        return cls(
            state=data.get("state", "off"),
            kind=data.get("kind"),
            non_existence=data.get("nonExistence"),
        )


@dataclass(frozen=True, slots=True)
class ManagedZone:
    """A DNS namespace hosted by Cloud DNS, with its own name servers."""

    name: str
    dns_name: str
    visibility: str = "public"
    dnssec_config: DnssecConfig = field(default_factory=DnssecConfig)
    name_servers: tuple[str, ...] = ()
    id: str | None = None
    description: str | None = None
    creation_time: str | None = None
    labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ManagedZone:
        return cls(
            name=data.get("name", ""),
            dns_name=data.get("dnsName", ""),
            visibility=data.get("visibility") or "public",
            dnssec_config=DnssecConfig.from_api(data.get("dnssecConfig") or {}),
            name_servers=tuple(data.get("nameServers") or ()),
            id=data.get("id"),
            description=data.get("description") or None,
            creation_time=data.get("creationTime"),
            labels=dict(data.get("labels") or {}),
        )


@dataclass(frozen=True, slots=True)
class ResourceRecordSet:
    """
    A record set keyed by (name, type).

    `ttl` may be None on a record that is being built for an update, in
    which case the client inherits the TTL of the record it replaces.
    """

    name: str
    type: str
    rrdatas: tuple[str, ...] = ()
    ttl: int | None = None
    signature_rrdatas: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.type)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ResourceRecordSet:
        return cls(
            name=data.get("name", ""),
            type=data.get("type", ""),
            rrdatas=tuple(data.get("rrdatas") or ()),
            ttl=data.get("ttl"),
            signature_rrdatas=tuple(data.get("signatureRrdatas") or ()),
        )

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "rrdatas": list(self.rrdatas),
        }
        if self.ttl is not None:
            payload["ttl"] = self.ttl
        if self.signature_rrdatas:
            payload["signatureRrdatas"] = list(self.signature_rrdatas)
        return payload


@dataclass(frozen=True, slots=True)
class Change:
    """
    One atomic batch of record-set additions and deletions.

    The remote system applies it all-or-nothing and reports `pending` until
    it is propagated, then `done`.
    """

    additions: tuple[ResourceRecordSet, ...] = ()
    deletions: tuple[ResourceRecordSet, ...] = ()
    id: str | None = None
    status: str = ChangeStatus.PENDING
    start_time: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status == ChangeStatus.DONE

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Change:
        return cls(
            additions=tuple(ResourceRecordSet.from_api(r) for r in data.get("additions") or ()),
            deletions=tuple(ResourceRecordSet.from_api(r) for r in data.get("deletions") or ()),
            id=data.get("id"),
            status=data.get("status") or ChangeStatus.PENDING,
            start_time=data.get("startTime"),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "additions": [r.to_api() for r in self.additions],
            "deletions": [r.to_api() for r in self.deletions],
        }


@dataclass(frozen=True, slots=True)
class MutationOutcome:
    """What a completed create/update/delete reports back to the tool layer."""

    record: ResourceRecordSet
    change: Change
    previous: ResourceRecordSet | None = None
