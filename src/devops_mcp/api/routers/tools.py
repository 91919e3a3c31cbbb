"""Tool call router: runs the shared MCP handlers over plain HTTP.

Credentials come from request headers and are passed down explicitly in a
ToolContext, one per request.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Header, HTTPException, status
from pydantic import SecretStr

from devops_core.config import get_settings
from devops_core.models import Credentials

from ... import handlers, tools

logger = logging.getLogger("devops-mcp.http.tools")

router = APIRouter(prefix="/tools", tags=["tools"])


def credentials_from_headers(
    pat: Optional[str],
    org_url: Optional[str],
    project: Optional[str],
) -> Credentials:
    """Build per-request credentials from inbound headers."""
    return Credentials(pat=SecretStr(pat or ""), org_url=org_url or "", project=project or None)


@router.get("")
def list_tools():
    """List available tools with their input schemas."""
    return [
        {"name": tool.name, "description": tool.description, "inputSchema": tool.inputSchema}
        for tool in tools.get_tools()
    ]


@router.post("/{name}")
async def call_tool(
    name: str,
    arguments: Optional[dict[str, Any]] = Body(None),
    x_azure_devops_pat: Optional[str] = Header(None, alias="X-Azure-DevOps-PAT"),
    x_azure_devops_org_url: Optional[str] = Header(None, alias="X-Azure-DevOps-Org-Url"),
    x_azure_devops_project: Optional[str] = Header(None, alias="X-Azure-DevOps-Project"),
):
    """Run a tool. The body is the tool's argument object."""
    if name not in handlers.HANDLERS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown tool: {name}")

    context = handlers.ToolContext(
        settings=get_settings(),
        credentials=credentials_from_headers(x_azure_devops_pat, x_azure_devops_org_url, x_azure_devops_project),
    )
    content, is_error = await handlers.run_tool(name, arguments, context)

    return {
        "content": [item.model_dump() for item in content],
        "isError": is_error,
    }
