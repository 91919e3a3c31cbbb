"""DevOps MCP Server - Expose Azure DevOps work items to AI assistants."""
import sys
import asyncio
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    Tool,
    TextContent,
    ImageContent,
    EmbeddedResource,
)
from pydantic import SecretStr

from devops_core.config import get_settings
from devops_core.models import Credentials

from . import tools
from . import handlers


# Configure logging to stderr (stdout carries the MCP stream)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr,
    force=True
)
logger = logging.getLogger("devops-mcp")

settings = get_settings()

if settings.azure_devops_pat and settings.azure_devops_org_url:
    logger.info(f"MCP Server configured for organization: {settings.azure_devops_org_url}")
else:
    logger.info("MCP Server running without default credentials; tools must receive them as arguments")


# MCP Server instance
app = Server("devops-mcp")


def default_credentials() -> Credentials:
    """Credentials from the environment, used when a tool call does not supply its own."""
    return Credentials(
        pat=SecretStr(settings.azure_devops_pat or ""),
        org_url=settings.azure_devops_org_url or "",
        project=settings.azure_devops_project,
    )


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools."""
    return tools.get_tools()


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent | ImageContent | EmbeddedResource]:
    """Handle MCP tool calls by delegating to shared handlers."""
    context = handlers.ToolContext(settings=settings, credentials=default_credentials())
    content, is_error = await handlers.run_tool(name, arguments, context)
    if is_error:
        logger.warning(f"Tool {name} finished with an error")
    return content


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
