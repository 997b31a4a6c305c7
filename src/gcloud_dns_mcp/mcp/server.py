"""
FastMCP server setup.

Transport: stdio (the AI-assistant runtime spawns this process and speaks
MCP over stdin/stdout). Nothing else may write to stdout.
"""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from gcloud_dns_mcp.mcp.tools import register_tools
from gcloud_dns_mcp.service import DnsService

SERVER_NAME = "gcloud-dns-mcp"
INSTRUCTIONS = "Google Cloud DNS zones and records management via API"

__all__ = ["SERVER_NAME", "create_server"]


def create_server(service: DnsService) -> FastMCP:
    """Create the MCP server and register all tools backed by *service*."""
    server = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)
    register_tools(server, service)
    return server
