"""
MCP tool definitions — 6 tools across 2 categories.

Categories: Read (3), Mutate (3).
Each tool has a ``<name>_impl`` coroutine testable without a running server;
``register_tools()`` binds them to a FastMCP instance under their public
names. Failures are raised as ToolError so the client sees ``isError``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from mcp.server.fastmcp.exceptions import ToolError

from gcloud_dns_mcp.errors import DnsError
from gcloud_dns_mcp.formatting import (
    format_mutation,
    format_record_list,
    format_zone,
    format_zone_list,
)
from gcloud_dns_mcp.service import DnsService

log = structlog.get_logger()


async def _run(action: str, call: Callable[[], Awaitable[str]]) -> str:
    """Await a tool body, converting DnsError into a ToolError for MCP."""
    try:
        return await call()
    except DnsError as e:
        log.warning("tool.failed", action=action, error_code=e.code.value, error=str(e))
        raise ToolError(f"Error {action}: {e}") from e


# ---------------------------------------------------------------------------
# Read tools (3)
# ---------------------------------------------------------------------------


async def list_zones_impl(service: DnsService) -> str:
    """List all managed zones."""

    async def call() -> str:
        return format_zone_list(await service.list_zones())

    return await _run("listing managed zones", call)


async def get_zone_impl(service: DnsService, zone_name: str) -> str:
    """Get details for one managed zone."""

    async def call() -> str:
        return format_zone(await service.get_zone(zone_name))

    return await _run("getting managed zone details", call)


async def list_records_impl(
    service: DnsService,
    zone_name: str,
    *,
    type: str | None = None,
    name: str | None = None,
) -> str:
    """List record sets, optionally filtered by type and name."""

    async def call() -> str:
        records = await service.list_records(zone_name, type=type, name=name)
        return format_record_list(zone_name, records)

    return await _run("listing DNS records", call)


# ---------------------------------------------------------------------------
# Mutate tools (3)
# ---------------------------------------------------------------------------


async def create_record_impl(
    service: DnsService,
    zone_name: str,
    name: str,
    type: str,
    rrdatas: list[str],
    *,
    ttl: int = 300,
) -> str:
    """Create a record set and wait for the change to complete."""

    async def call() -> str:
        outcome = await service.create_record(zone_name, name, type, rrdatas, ttl=ttl)
        return format_mutation("created", outcome)

    return await _run("creating DNS record", call)


async def update_record_impl(
    service: DnsService,
    zone_name: str,
    name: str,
    type: str,
    rrdatas: list[str],
    *,
    ttl: int | None = None,
) -> str:
    """Replace a record set's data (and optionally TTL) and wait for completion."""

    async def call() -> str:
        outcome = await service.update_record(zone_name, name, type, rrdatas, ttl=ttl)
        return format_mutation("updated", outcome)

    return await _run("updating DNS record", call)


async def delete_record_impl(service: DnsService, zone_name: str, name: str, type: str) -> str:
    """Delete a record set (never NS or SOA) and wait for completion."""

    async def call() -> str:
        outcome = await service.delete_record(zone_name, name, type)
        return format_mutation("deleted", outcome)

    return await _run("deleting DNS record", call)


def register_tools(server: Any, service: DnsService) -> None:
    """Register all 6 MCP tools on the FastMCP server."""

    @server.tool(name="gcloud_dns_list_zones")  # type: ignore[untyped-decorator]
    async def list_zones() -> str:
        """List all DNS managed zones in the Google Cloud project."""
        return await list_zones_impl(service)

    @server.tool(name="gcloud_dns_get_zone")  # type: ignore[untyped-decorator]
    async def get_zone(zone_name: str) -> str:
        """Get details for a specific DNS managed zone (by zone name, not DNS name)."""
        return await get_zone_impl(service, zone_name)

    @server.tool(name="gcloud_dns_list_records")  # type: ignore[untyped-decorator]
    async def list_records(
        zone_name: str,
        type: str | None = None,
        name: str | None = None,
    ) -> str:
        """List DNS records in a managed zone, optionally filtered by type
        (A, AAAA, CNAME, MX, TXT, NS, SOA...) and name (www.example.com.)."""
        return await list_records_impl(service, zone_name, type=type, name=name)

    @server.tool(name="gcloud_dns_create_record")  # type: ignore[untyped-decorator]
    async def create_record(
        zone_name: str,
        name: str,
        type: str,
        rrdatas: list[str],
        ttl: int = 300,
    ) -> str:
        """Create a new DNS record in a managed zone. The name must end with the
        zone's DNS name; rrdatas holds IP addresses, hostnames or text values."""
        return await create_record_impl(service, zone_name, name, type, rrdatas, ttl=ttl)

    @server.tool(name="gcloud_dns_update_record")  # type: ignore[untyped-decorator]
    async def update_record(
        zone_name: str,
        name: str,
        type: str,
        rrdatas: list[str],
        ttl: int | None = None,
    ) -> str:
        """Update an existing DNS record's data; the TTL is kept unless given."""
        return await update_record_impl(service, zone_name, name, type, rrdatas, ttl=ttl)

    @server.tool(name="gcloud_dns_delete_record")  # type: ignore[untyped-decorator]
    async def delete_record(zone_name: str, name: str, type: str) -> str:
        """Delete a DNS record from a managed zone. NS and SOA records cannot be deleted."""
        return await delete_record_impl(service, zone_name, name, type)
