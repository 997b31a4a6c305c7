"""
gcloud_dns_mcp — Google Cloud DNS zone and record management over MCP.

Signs service-account assertions for OAuth2 bearer tokens, issues Cloud DNS
API calls, and waits for submitted changes to finish propagating, exposing
six tools to an AI-assistant runtime.
"""

__version__ = "0.1.0"
