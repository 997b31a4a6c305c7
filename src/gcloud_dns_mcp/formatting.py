"""Plain-text rendering of zones, record sets and completed mutations."""

from __future__ import annotations

from datetime import datetime

from gcloud_dns_mcp.domain.models import ManagedZone, MutationOutcome, ResourceRecordSet


def _timestamp(value: str | None) -> str:
    if not value:
        return "Unknown"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime(
            "%Y-%m-%d %H:%M:%S %Z"
        ).strip()
    except ValueError:
        return value


def format_zone_list(zones: list[ManagedZone]) -> str:
    if not zones:
        return "No DNS managed zones found in the project."
    blocks = [
        f"• {z.dns_name} ({z.name})\n"
        f"  - Description: {z.description or 'No description'}\n"
        f"  - Visibility: {z.visibility}\n"
        f"  - Name servers: {', '.join(z.name_servers) or 'None'}\n"
        f"  - DNSSEC: {z.dnssec_config.state}\n"
        f"  - Created: {_timestamp(z.creation_time)}"
        for z in zones
    ]
    return f"Found {len(zones)} DNS managed zones:\n\n" + "\n\n".join(blocks)


def format_zone(zone: ManagedZone) -> str:
    lines = [
        f"Managed Zone Details: {zone.dns_name}",
        "",
        f"Zone Name: {zone.name}",
        f"DNS Name: {zone.dns_name}",
        f"Description: {zone.description or 'No description'}",
        f"Visibility: {zone.visibility}",
        f"Created: {_timestamp(zone.creation_time)}",
        f"DNSSEC State: {zone.dnssec_config.state}",
        "Name Servers:",
    ]
    lines += [f"  - {ns}" for ns in zone.name_servers] or ["  None"]
    if zone.labels:
        lines.append("Labels:")
        lines += [f"  - {k}: {v}" for k, v in sorted(zone.labels.items())]
    return "\n".join(lines)


def format_record_list(zone_name: str, records: list[ResourceRecordSet]) -> str:
    if not records:
        return "No DNS records found with the specified criteria."
    blocks = []
    for r in records:
        block = (
            f"• {r.name} ({r.type})\n"
            f"  - TTL: {r.ttl if r.ttl is not None else 'default'}\n"
            f"  - Data: {', '.join(r.rrdatas) or 'No data'}"
        )
        if r.signature_rrdatas:
            block += f"\n  - Signatures: {', '.join(r.signature_rrdatas)}"
        blocks.append(block)
    return f"Found {len(records)} DNS records in zone '{zone_name}':\n\n" + "\n".join(blocks)


def format_mutation(verb: str, outcome: MutationOutcome) -> str:
    record, change = outcome.record, outcome.change
    return (
        f"Successfully {verb} DNS record:\n\n"
        f"Name: {record.name}\n"
        f"Type: {record.type}\n"
        f"TTL: {record.ttl}\n"
        f"Data: {', '.join(record.rrdatas)}\n"
        f"Change ID: {change.id}\n"
        f"Status: {change.status}\n"
        f"Started: {_timestamp(change.start_time)}"
    )
