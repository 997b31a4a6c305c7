"""
DNS service — the six boundary operations exposed to the tool layer.

Orchestrates the client and the change waiter for one tool invocation:

  list_zones / get_zone / list_records → one read, no local caching
  create_record                        → validate → submit → wait
  update_record                        → validate → fetch current → submit → wait
  delete_record                        → policy guard → fetch current → submit → wait

A mutation is only reported once its change is `done`. Inputs are checked
before any network call; everything else raised by the client propagates
unmodified.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import replace

from gcloud_dns_mcp.adapters.dns_client import DEFAULT_TTL, PROTECTED_TYPES, CloudDnsClient
from gcloud_dns_mcp.domain.models import (
    Change,
    ManagedZone,
    MutationOutcome,
    ResourceRecordSet,
)
from gcloud_dns_mcp.errors import ApiError, NotFoundError, PolicyError, ValidationError
from gcloud_dns_mcp.waiter import ChangeWaiter


def fqdn(name: str) -> str:
    """Cloud DNS names are fully qualified; append the trailing dot if missing."""
    name = name.strip()
    if name.endswith("."):
        return name
    return f"{name}."


def _require_text(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} parameter must be a non-empty string")
    return value.strip()


# Cloud DNS managed zone names: 1-63 chars of [a-z0-9-], starting with a letter
_ZONE_NAME = re.compile(r"[a-z](?:[a-z0-9-]{0,61}[a-z0-9])?")


def _require_zone(value: object) -> str:
    zone = _require_text(value, "zoneName")
    if not _ZONE_NAME.fullmatch(zone):
        raise ValidationError(
            "zoneName must be a managed zone name (lowercase letters, digits and "
            f"dashes, starting with a letter), got {zone!r}"
        )
    return zone


def _require_rrdatas(rrdatas: object) -> tuple[str, ...]:
    if (
        not isinstance(rrdatas, Sequence)
        or isinstance(rrdatas, str)
        or not rrdatas
        or not all(isinstance(v, str) and v for v in rrdatas)
    ):
        raise ValidationError("rrdatas parameter must be a non-empty array of strings")
    return tuple(rrdatas)


def _require_ttl(ttl: object) -> int:
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
        raise ValidationError(f"ttl must be a positive integer number of seconds, got {ttl!r}")
    return ttl


class DnsService:
    """Zone and record operations, each completing only when Cloud DNS is done."""

    def __init__(self, client: CloudDnsClient, waiter: ChangeWaiter) -> None:
        self._client = client
        self._waiter = waiter

    async def list_zones(self) -> list[ManagedZone]:
        return await self._client.list_zones()

    async def get_zone(self, zone_name: str) -> ManagedZone:
        return await self._client.get_zone(_require_zone(zone_name))

    async def list_records(
        self,
        zone_name: str,
        type: str | None = None,
        name: str | None = None,
    ) -> list[ResourceRecordSet]:
        zone = _require_zone(zone_name)
        return await self._client.list_records(
            zone,
            type_filter=type.strip().upper() if type else None,
            name_filter=fqdn(name) if name else None,
        )

    async def create_record(
        self,
        zone_name: str,
        name: str,
        type: str,
        rrdatas: Sequence[str],
        ttl: int = DEFAULT_TTL,
    ) -> MutationOutcome:
        zone = _require_zone(zone_name)
        record = ResourceRecordSet(
            name=fqdn(_require_text(name, "name")),
            type=_require_text(type, "type").upper(),
            rrdatas=_require_rrdatas(rrdatas),
            ttl=_require_ttl(ttl),
        )
        change = await self._client.create_record(zone, record)
        done = await self._wait(zone, change)
        return MutationOutcome(record=record, change=done)

    async def update_record(
        self,
        zone_name: str,
        name: str,
        type: str,
        rrdatas: Sequence[str],
        ttl: int | None = None,
    ) -> MutationOutcome:
        """
        Replace the current record set with new data.

        The current set is fetched first because Cloud DNS requires the
        exact existing record in the deletion; TTL is kept when not given.
        """
        zone = _require_zone(zone_name)
        record = ResourceRecordSet(
            name=fqdn(_require_text(name, "name")),
            type=_require_text(type, "type").upper(),
            rrdatas=_require_rrdatas(rrdatas),
            ttl=None if ttl is None else _require_ttl(ttl),
        )
        current = await self._find_current(zone, record.name, record.type)
        change = await self._client.update_record(zone, current, record)
        done = await self._wait(zone, change)
        if done.additions:
            added = done.additions[0]
        else:
            added = replace(record, ttl=record.ttl or current.ttl or DEFAULT_TTL)
        return MutationOutcome(record=added, change=done, previous=current)

    async def delete_record(self, zone_name: str, name: str, type: str) -> MutationOutcome:
        zone = _require_zone(zone_name)
        record_name = fqdn(_require_text(name, "name"))
        record_type = _require_text(type, "type").upper()
        if record_type in PROTECTED_TYPES:
            raise PolicyError(
                f"Cannot delete {record_type} records as they are required "
                "for proper DNS functioning"
            ).annotate("delete record in zone", zone)

        current = await self._find_current(zone, record_name, record_type)
        change = await self._client.delete_record(zone, current)
        done = await self._wait(zone, change)
        return MutationOutcome(record=current, change=done)

    async def _find_current(self, zone: str, name: str, type: str) -> ResourceRecordSet:
        records = await self._client.list_records(zone, type_filter=type, name_filter=name)
        for record in records:
            if record.key == (name, type):
                return record
        raise NotFoundError(f"Record '{name}' of type '{type}' not found in zone '{zone}'")

    async def _wait(self, zone: str, change: Change) -> Change:
        if change.is_done:
            return change
        if not change.id:
            raise ApiError("Cloud DNS accepted the change but returned no change id").annotate(
                "wait for change in zone", zone
            )
        return await self._waiter.wait(zone, change.id)
