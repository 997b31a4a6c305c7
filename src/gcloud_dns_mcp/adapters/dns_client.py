"""
Cloud DNS client — zones, record sets and changes as transport calls.

Adapter layer — implements the ChangeSource port on top of ApiTransport.

Every mutation is exactly one Change:
  - create  → additions=[rec],  deletions=[]
  - update  → additions=[new],  deletions=[old]   (never an in-place edit)
  - delete  → additions=[],     deletions=[rec]

Updates are not server-side patches: `old` must match the current remote
record set exactly (name, type, ttl, rrdatas) or Cloud DNS rejects the
change. Callers re-fetch before updating.

Errors keep their class and status; they are annotated with the operation
and target so the caller does not need to re-derive context.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any
from urllib.parse import quote

import structlog

from gcloud_dns_mcp.domain.models import Change, ManagedZone, ResourceRecordSet
from gcloud_dns_mcp.domain.ports import ApiTransport
from gcloud_dns_mcp.errors import DnsError, PolicyError

log = structlog.get_logger()

DEFAULT_TTL = 300
PROTECTED_TYPES = frozenset({"NS", "SOA"})


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, dots included, so it cannot leave its position."""
    return quote(value, safe="").replace(".", "%2E")


@asynccontextmanager
async def _annotated(operation: str, target: str | None = None) -> AsyncIterator[None]:
    try:
        yield
    except DnsError as e:
        e.annotate(operation, target)
        raise


class CloudDnsClient:
    """
    Domain operations against one project's managed zones.

    Holds no zone or record state; every read goes to the API.
    """

    def __init__(self, transport: ApiTransport) -> None:
        self._transport = transport

    # ─────────────────────── Zones ───────────────────────

    async def list_zones(self) -> list[ManagedZone]:
        """List all managed zones in the project, following pagination."""
        async with _annotated("list managed zones"):
            items = await self._paginate("/managedZones", "managedZones")
        return [ManagedZone.from_api(z) for z in items]

    async def get_zone(self, name: str) -> ManagedZone:
        async with _annotated("get managed zone", name):
            data = await self._transport.request(f"/managedZones/{_segment(name)}")
        return ManagedZone.from_api(data)

    # ─────────────────────── Record sets ───────────────────────

    async def list_records(
        self,
        zone: str,
        type_filter: str | None = None,
        name_filter: str | None = None,
    ) -> list[ResourceRecordSet]:
        """
        List record sets in a zone.

        A missing filter means no filtering on that dimension. Cloud DNS only
        accepts `type` together with `name`, so a type-only filter is applied
        to the returned sets instead of being sent.
        """
        params: dict[str, str] = {}
        if name_filter:
            params["name"] = name_filter
            if type_filter:
                params["type"] = type_filter
        async with _annotated("list records in zone", zone):
            items = await self._paginate(
                f"/managedZones/{_segment(zone)}/rrsets", "rrsets", params
            )
        records = [ResourceRecordSet.from_api(r) for r in items]
        if type_filter and not name_filter:
            records = [r for r in records if r.type == type_filter]
        return records

    async def create_record(self, zone: str, rec: ResourceRecordSet) -> Change:
        change = Change(additions=(rec,), deletions=())
        async with _annotated("create record in zone", zone):
            return await self._submit(zone, change)

    async def update_record(
        self,
        zone: str,
        old: ResourceRecordSet,
        new: ResourceRecordSet,
    ) -> Change:
        """
        Replace `old` with `new` in one change.

        `new.ttl` defaults to `old.ttl` when unset.
        """
        if new.ttl is None:
            new = replace(new, ttl=old.ttl or DEFAULT_TTL)
        change = Change(additions=(new,), deletions=(old,))
        async with _annotated("update record in zone", zone):
            return await self._submit(zone, change)

    async def delete_record(self, zone: str, rec: ResourceRecordSet) -> Change:
        """Delete a record set. NS and SOA sets are refused without calling the API."""
        if rec.type.upper() in PROTECTED_TYPES:
            raise PolicyError(
                f"Cannot delete {rec.type.upper()} records as they are required "
                "for proper DNS functioning"
            ).annotate("delete record in zone", zone)
        change = Change(additions=(), deletions=(rec,))
        async with _annotated("delete record in zone", zone):
            return await self._submit(zone, change)

    # ─────────────────────── Changes ───────────────────────

    async def get_change(self, zone: str, change_id: str) -> Change:
        async with _annotated(f"get change '{change_id}' in zone", zone):
            data = await self._transport.request(
                f"/managedZones/{_segment(zone)}/changes/{_segment(change_id)}"
            )
        return Change.from_api(data)

    async def _submit(self, zone: str, change: Change) -> Change:
        data = await self._transport.request(
            f"/managedZones/{_segment(zone)}/changes", "POST", change.to_api()
        )
        submitted = Change.from_api(data)
        log.info(
            "change.submitted",
            zone=zone,
            change_id=submitted.id,
            status=submitted.status,
            additions=len(change.additions),
            deletions=len(change.deletions),
        )
        return submitted

    async def _paginate(
        self,
        endpoint: str,
        key: str,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        query = dict(params or {})
        while True:
            data = await self._transport.request(endpoint, params=query or None)
            items += data.get(key) or []
            token = data.get("nextPageToken")
            if not token:
                break
            query["pageToken"] = token
        return items
