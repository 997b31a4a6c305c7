"""
Application entry point — wires dependencies and starts the MCP server.

Composition root: creates concrete adapters, injects them into the
service, and hands the service to the MCP server.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Load and validate configuration from environment (fail fast)
  2. Configure structlog for human-readable logging on stderr
  3. Create concrete adapters (credentials → token provider → transport → client)
  4. Wire the change waiter and the DNS service
  5. Create the MCP server and run it over stdio
"""

from __future__ import annotations

import logging
import sys

import structlog

from gcloud_dns_mcp import __version__
from gcloud_dns_mcp.adapters.dns_client import CloudDnsClient
from gcloud_dns_mcp.adapters.http_client import GoogleDnsTransport
from gcloud_dns_mcp.adapters.token_provider import ServiceAccountTokenProvider
from gcloud_dns_mcp.config import AppSettings, load_settings
from gcloud_dns_mcp.errors import ConfigError
from gcloud_dns_mcp.mcp.server import create_server
from gcloud_dns_mcp.service import DnsService
from gcloud_dns_mcp.waiter import ChangeWaiter


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for colored, human-readable console output.

    Logs go to stderr: stdout is reserved for the MCP stdio stream.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def build_service(settings: AppSettings) -> DnsService:
    """
    Instantiate all concrete adapters from application settings.

    Raises ConfigError when the credentials cannot be parsed, before any
    network call is made.
    """
    credential = settings.service_account()
    token_provider = ServiceAccountTokenProvider(
        credential,
        safety_margin=settings.token_safety_margin_seconds,
        timeout=settings.http_timeout_seconds,
    )
    transport = GoogleDnsTransport(
        project_id=settings.project_id,
        token_source=token_provider,
        base_url=settings.api_base_url,
        timeout=settings.http_timeout_seconds,
    )
    client = CloudDnsClient(transport)
    waiter = ChangeWaiter(
        client,
        poll_interval=settings.change_poll_interval_seconds,
        timeout_ms=settings.change_timeout_ms,
    )
    return DnsService(client, waiter)


def main() -> None:
    """Wire dependencies and serve the DNS tools over stdio."""
    try:
        settings = load_settings()
        configure_structlog(settings.log_level)
        service = build_service(settings)
    except ConfigError as e:
        print(f"FATAL: {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    log = structlog.get_logger()
    log.info(
        "app.starting",
        version=__version__,
        project_id=settings.project_id,
        log_level=settings.log_level,
    )

    server = create_server(service)
    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="signal received")


if __name__ == "__main__":
    main()
