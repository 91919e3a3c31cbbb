"""Shared MCP tool definitions.

This module provides the definitive list of MCP tools used by both stdio and HTTP transports.
This prevents code drift and ensures both endpoints expose identical functionality.
"""

from mcp.types import Tool

# Credential arguments accepted by every Azure DevOps tool. They override the
# defaults taken from the environment (stdio) or request headers (HTTP).
CREDENTIAL_PROPERTIES = {
    "azure_devops_pat": {
        "type": "string",
        "description": "Azure DevOps Personal Access Token (optional if configured on the server)"
    },
    "azure_devops_org_url": {
        "type": "string",
        "description": "Azure DevOps organization URL, e.g. https://dev.azure.com/yourorg "
                       "(optional if configured on the server)"
    },
    "azure_devops_project": {
        "type": "string",
        "description": "Azure DevOps project name (optional)"
    },
}

WORK_ITEM_ID_PROPERTY = {
    "type": "integer",
    "minimum": 1,
    "maximum": 999999,
    "description": "Work item ID to look up"
}


def get_tools() -> list[Tool]:
    """Get the list of all MCP tools."""
    return [
        # ============================================================================
        # Azure DevOps Tools
        # ============================================================================
        Tool(
            name="validate_azure_devops_user",
            description="Validate the Azure DevOps user and PAT, and show who the token belongs to. "
                       "Run this first when other Azure DevOps tools report authentication errors.",
            inputSchema={
                "type": "object",
                "properties": dict(CREDENTIAL_PROPERTIES),
            }
        ),
        Tool(
            name="get_work_item",
            description="Get an Azure DevOps work item by ID: title, type, state, assignee, dates, "
                       "description and a link to the web view. Also reports the Feature or Epic the "
                       "item belongs to (the item itself when it already is one)."
                       "\n\nErrors: work item not found, authentication failed, query timed out.",
            inputSchema={
                "type": "object",
                "properties": {
                    "work_item_id": WORK_ITEM_ID_PROPERTY,
                    **CREDENTIAL_PROPERTIES,
                },
                "required": ["work_item_id"]
            }
        ),
        Tool(
            name="find_parent_feature",
            description="Find the Feature or Epic above a work item. Works for Task, Bug, User Story, "
                       "Product Backlog Item and other child items. Only strictly-upward items count: "
                       "a Feature without a parent Epic reports no parent."
                       "\n\nA missing parent is reported as a normal result; a timeout is reported "
                       "as an error because the answer is unknown.",
            inputSchema={
                "type": "object",
                "properties": {
                    "work_item_id": WORK_ITEM_ID_PROPERTY,
                    **CREDENTIAL_PROPERTIES,
                },
                "required": ["work_item_id"]
            }
        ),

        # ============================================================================
        # Calculator Tools
        # ============================================================================
        Tool(
            name="add",
            description="Add two numbers and return the result.",
            inputSchema={
                "type": "object",
                "properties": {
                    "a": {"type": "number", "description": "First number"},
                    "b": {"type": "number", "description": "Second number"}
                },
                "required": ["a", "b"]
            }
        ),

        # ============================================================================
        # Japanese Vocabulary Tools
        # ============================================================================
        Tool(
            name="search_japanese_vocabulary",
            description="Search Japanese vocabulary by Japanese word or Chinese keyword.",
            inputSchema={
                "type": "object",
                "properties": {
                    "keyword": {"type": "string", "description": "Japanese word or Chinese keyword"},
                    "limit": {"type": "integer", "description": "Maximum number of results (default: 10)"}
                },
                "required": ["keyword"]
            }
        ),
        Tool(
            name="get_random_japanese_vocabulary",
            description="Get random Japanese vocabulary, optionally filtered by JLPT level or category.",
            inputSchema={
                "type": "object",
                "properties": {
                    "count": {"type": "integer", "description": "Number of words (default: 5)"},
                    "level": {"type": "string", "description": "JLPT level filter (N5, N4, N3, N2, N1)"},
                    "category": {"type": "string", "description": "Category filter"}
                }
            }
        ),
    ]
