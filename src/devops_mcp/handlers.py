"""Common MCP tool handlers shared between stdio and HTTP transports.

This module provides handler logic that can be used by both:
- src/devops_mcp/server.py (stdio transport)
- src/devops_mcp/api/routers/tools.py (HTTP transport, credentials from headers)

All handlers follow a consistent pattern:
- Accept: arguments dict and a ToolContext
- Return: list[TextContent]
- Raise errors from devops_core.errors; run_tool turns them into text
- Use formatters from formatters module for consistent output

Credentials travel inside the ToolContext passed to every handler. Nothing
about the current request is kept in module state.
"""
import logging
import traceback
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

import httpx
import pydantic
from mcp.types import TextContent
from pydantic import BaseModel, Field, SecretStr

from devops_core import errors
from devops_core.client import WorkItemClient
from devops_core.config import MAX_WORK_ITEM_ID, MIN_WORK_ITEM_ID, Settings, get_settings
from devops_core.hierarchy import HierarchyResolver, resolve_with_timeout
from devops_core.identity import validate_identity
from devops_core.models import Credentials

from . import formatters

logger = logging.getLogger("devops-mcp.handlers")

CREDENTIAL_ARGUMENTS = ("azure_devops_pat", "azure_devops_org_url", "azure_devops_project")
SECRET_ARGUMENTS = {"azure_devops_pat"}


@dataclass
class ToolContext:
    """Everything a handler needs for one tool call."""

    settings: Settings = field(default_factory=get_settings)
    credentials: Credentials = field(default_factory=Credentials)
    http_client: Optional[httpx.AsyncClient] = None
    sleep: Optional[Callable[[float], Awaitable[None]]] = None


# ============================================================================
# Argument Models
# ============================================================================

class WorkItemArgs(BaseModel):
    work_item_id: int = Field(..., ge=MIN_WORK_ITEM_ID, le=MAX_WORK_ITEM_ID)


class AddArgs(BaseModel):
    a: Union[int, float]
    b: Union[int, float]


class SearchVocabularyArgs(BaseModel):
    keyword: str = Field(..., min_length=1)
    limit: int = Field(10, ge=1)


class RandomVocabularyArgs(BaseModel):
    count: int = Field(5, ge=1)
    level: Optional[str] = None
    category: Optional[str] = None


def parse_arguments(model: type[BaseModel], arguments: dict) -> Any:
    """Validate tool arguments, raising ValidationError before any network call."""
    payload = {k: v for k, v in arguments.items() if k not in CREDENTIAL_ARGUMENTS and v is not None}
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise errors.ValidationError(f"Invalid arguments - {problems}") from e


def redact_arguments(arguments: Optional[dict]) -> dict:
    """Copy of the arguments safe to log."""
    return {
        key: ("***" if key in SECRET_ARGUMENTS and value else value)
        for key, value in (arguments or {}).items()
    }


def resolve_credentials(arguments: dict, context: ToolContext) -> Credentials:
    """Explicit tool arguments override the context defaults."""
    defaults = context.credentials
    pat = arguments.get("azure_devops_pat") or defaults.pat.get_secret_value()
    return Credentials(
        pat=SecretStr(pat or ""),
        org_url=arguments.get("azure_devops_org_url") or defaults.org_url,
        project=arguments.get("azure_devops_project") or defaults.project,
    )


@asynccontextmanager
async def open_client(credentials: Credentials, context: ToolContext) -> AsyncIterator[WorkItemClient]:
    client = WorkItemClient(
        credentials,
        http_client=context.http_client,
        profile_url=context.settings.profile_url,
        timeout=context.settings.http_timeout,
    )
    try:
        yield client
    finally:
        await client.aclose()


def _build_resolver(client: WorkItemClient, context: ToolContext) -> HierarchyResolver:
    if context.sleep is not None:
        return HierarchyResolver(client, context.settings.limits, sleep=context.sleep)
    return HierarchyResolver(client, context.settings.limits)


# ============================================================================
# Azure DevOps Handlers
# ============================================================================

async def handle_validate_user(arguments: dict, context: ToolContext) -> list[TextContent]:
    """Validate the PAT and report who it belongs to."""
    credentials = resolve_credentials(arguments, context)

    async with open_client(credentials, context) as client:
        identity = await validate_identity(credentials, client)

    text = formatters.format_validation_report(identity, credentials.org_url)
    return [TextContent(type="text", text=text)]


async def handle_get_work_item(arguments: dict, context: ToolContext) -> list[TextContent]:
    """Get a work item and the Feature/Epic it belongs to.

    Identity is validated strictly before the work item graph is touched.
    The item itself counts as its own root when it already is a Feature/Epic.
    """
    args = parse_arguments(WorkItemArgs, arguments)
    credentials = resolve_credentials(arguments, context)

    async with open_client(credentials, context) as client:
        identity = await validate_identity(credentials, client)
        logger.info(f"Identity validated, fetching work item {args.work_item_id}")

        item = await client.fetch_item(args.work_item_id, include_relations=True)
        ancestor = await resolve_with_timeout(
            _build_resolver(client, context),
            item,
            include_self=True,
            timeout=context.settings.query_timeout,
        )

    logger.info(f"Successfully retrieved work item {item.id}: {item.title}")
    text = (
        f"{formatters.format_identity_banner(identity)}\n\n"
        f"{formatters.format_work_item(item, credentials.org_url, credentials.project, context.settings.display_timezone)}"
        f"\n{formatters.format_ancestor_section(ancestor, item)}"
    )
    return [TextContent(type="text", text=text)]


async def handle_find_parent_feature(arguments: dict, context: ToolContext) -> list[TextContent]:
    """Find the Feature or Epic strictly above a work item.

    A missing parent is a normal answer; errors and timeouts are raised.
    """
    args = parse_arguments(WorkItemArgs, arguments)
    credentials = resolve_credentials(arguments, context)

    async with open_client(credentials, context) as client:
        identity = await validate_identity(credentials, client)
        logger.info(f"Looking up parent Feature/Epic of work item {args.work_item_id}")

        start = await client.fetch_item(args.work_item_id, include_relations=True)
        feature = await resolve_with_timeout(
            _build_resolver(client, context),
            start,
            include_self=False,
            timeout=context.settings.query_timeout,
        )

    if feature is None:
        return [TextContent(type="text", text=formatters.format_no_parent(args.work_item_id))]

    text = (
        f"{formatters.format_identity_banner(identity)}\n\n"
        f"{formatters.format_parent_feature(feature, credentials.org_url, credentials.project, context.settings.display_timezone)}"
    )
    return [TextContent(type="text", text=text)]


# ============================================================================
# Calculator Handlers
# ============================================================================

async def handle_add(arguments: dict, context: ToolContext) -> list[TextContent]:
    """Add two numbers."""
    args = parse_arguments(AddArgs, arguments)
    result = args.a + args.b
    return [TextContent(type="text", text=f"{args.a} + {args.b} = {result}")]


# ============================================================================
# Japanese Vocabulary Handlers
# ============================================================================

async def _fetch_vocabulary(params: dict, context: ToolContext) -> tuple[Optional[list], Optional[str]]:
    """Query the vocabulary API. Returns (results, error_text)."""
    url = context.settings.vocabulary_api_url
    if context.http_client is not None:
        response = await context.http_client.get(url, params=params)
    else:
        async with httpx.AsyncClient(timeout=context.settings.http_timeout) as client:
            response = await client.get(url, params=params)

    logger.info(f"GET {url} - status: {response.status_code}")
    if not response.is_success:
        return None, f"API error: {response.status_code} {response.reason_phrase}"

    data = response.json()
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        return None, None
    return data["results"], None


async def handle_search_japanese_vocabulary(arguments: dict, context: ToolContext) -> list[TextContent]:
    """Search vocabulary by keyword."""
    args = parse_arguments(SearchVocabularyArgs, arguments)
    results, error = await _fetch_vocabulary({"keyword": args.keyword, "limit": str(args.limit)}, context)

    if error:
        text = error
    elif results is None:
        text = "No Japanese vocabulary data found"
    elif not results:
        text = f"No Japanese vocabulary found for '{args.keyword}'"
    else:
        prefix = f"Found {len(results)} Japanese words related to '{args.keyword}':\n\n"
        text = formatters.format_vocabulary_results(results, prefix)
    return [TextContent(type="text", text=text)]


async def handle_get_random_japanese_vocabulary(arguments: dict, context: ToolContext) -> list[TextContent]:
    """Get random vocabulary, optionally filtered."""
    args = parse_arguments(RandomVocabularyArgs, arguments)
    params = {"random": "true", "limit": str(args.count)}
    if args.level:
        params["level"] = args.level
    if args.category:
        params["category"] = args.category

    results, error = await _fetch_vocabulary(params, context)

    if error:
        text = error
    elif results is None:
        text = "Could not retrieve random Japanese vocabulary"
    elif not results:
        text = "No Japanese vocabulary matches the filters"
    else:
        prefix = f"{len(results)} random Japanese words"
        if args.level:
            prefix += f" ({args.level} level)"
        if args.category:
            prefix += f" ({args.category} category)"
        text = formatters.format_vocabulary_results(results, prefix + ":\n\n")
    return [TextContent(type="text", text=text)]


# ============================================================================
# Dispatch
# ============================================================================

Handler = Callable[[dict, ToolContext], Awaitable[list[TextContent]]]

HANDLERS: dict[str, Handler] = {
    # Azure DevOps handlers
    "validate_azure_devops_user": handle_validate_user,
    "validate_user": handle_validate_user,
    "get_work_item": handle_get_work_item,
    "find_parent_feature": handle_find_parent_feature,
    # Calculator handlers
    "add": handle_add,
    # Japanese vocabulary handlers
    "search_japanese_vocabulary": handle_search_japanese_vocabulary,
    "get_random_japanese_vocabulary": handle_get_random_japanese_vocabulary,
}


def _error(text: str) -> tuple[list[TextContent], bool]:
    return [TextContent(type="text", text=text)], True


async def run_tool(name: str, arguments: Optional[dict], context: ToolContext) -> tuple[list[TextContent], bool]:
    """Run a tool and convert failures into text.

    Returns:
        (content, is_error)
    """
    arguments = dict(arguments or {})
    logger.info(f"Tool call: {name} with arguments: {redact_arguments(arguments)}")

    handler = HANDLERS.get(name)
    if not handler:
        logger.warning(f"Unknown tool requested: {name}")
        return _error(f"Unknown tool: {name}")

    try:
        return await handler(arguments, context), False

    except errors.AuthError as e:
        logger.error(f"Authentication failed during {name} call: {e.reason.value}")
        return _error(f"❌ User validation failed: {e}")

    except errors.ValidationError as e:
        logger.warning(f"Invalid input for {name}: {e}")
        return _error(f"❌ {e}")

    except errors.QueryTimeoutError as e:
        logger.error(f"Timeout during {name} call: {e}")
        return _error(
            f"⏱️ {e}. The hierarchy could not be searched completely, "
            "so it is unknown whether a parent Feature/Epic exists."
        )

    except errors.DevOpsError as e:
        logger.error(f"Azure DevOps error during {name} call: {type(e).__name__}: {e}")
        return _error(f"Error: {e}")

    except httpx.RequestError as e:
        # Network/connection errors
        logger.error(f"Request error during {name} call:")
        logger.error(f"  Error type: {type(e).__name__}")
        logger.error(f"  Error message: {str(e)}")
        return _error(f"Error: Connection failed - {type(e).__name__}")

    except Exception as e:
        # Catch-all for unexpected errors
        logger.error(f"Unexpected error during {name} call:")
        logger.error(f"  Error type: {type(e).__name__}")
        logger.error(f"  Error message: {str(e)}")
        logger.error(f"  Arguments: {redact_arguments(arguments)}")
        logger.error(f"  Traceback:\n{traceback.format_exc()}")
        return _error(f"Error: {type(e).__name__}: {str(e)}")
