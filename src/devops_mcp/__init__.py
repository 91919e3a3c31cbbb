"""DevOps MCP Server - Model Context Protocol integration.

This package exposes Azure DevOps work item lookups (plus a few utility
tools) to AI assistants over MCP.

Modules:
- server: stdio MCP server implementation
- formatters: Response formatting utilities
- tools: MCP tool definitions
- handlers: Tool implementation handlers
- api: FastAPI surface (health check and HTTP tool calls)
"""

__version__ = "1.0.0"

# Export shared modules for use by the HTTP surface
from . import formatters
from . import tools
from . import handlers

__all__ = ["formatters", "tools", "handlers", "__version__"]
