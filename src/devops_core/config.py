"""Environment-driven configuration for the DevOps MCP services."""
import os
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

DEFAULT_PROFILE_URL = "https://app.vssps.visualstudio.com/_apis/profile/profiles/me?api-version=7.0"
DEFAULT_VOCABULARY_API_URL = "https://ai-tutor.6yuwei.com/api/vocabulary"
API_VERSION = "7.0"

# Hierarchy walk limits
MAX_RECURSION_DEPTH = 3
MAX_VISITED_ITEMS = 10
MAX_PARENT_RELATIONS = 3
API_DELAY_MS = 200
QUERY_TIMEOUT_SECONDS = 30.0

# Valid work item ids
MIN_WORK_ITEM_ID = 1
MAX_WORK_ITEM_ID = 999999


class TraversalLimits(BaseModel):
    """Budgets applied to a single hierarchy walk."""

    max_depth: int = MAX_RECURSION_DEPTH
    max_visited: int = MAX_VISITED_ITEMS
    max_parent_relations: int = MAX_PARENT_RELATIONS
    step_delay_ms: int = API_DELAY_MS


class Settings(BaseModel):
    """Process-wide settings. Credentials here are only defaults for the stdio server."""

    azure_devops_pat: Optional[str] = None
    azure_devops_org_url: Optional[str] = None
    azure_devops_project: Optional[str] = None
    profile_url: str = DEFAULT_PROFILE_URL
    http_timeout: float = 30.0
    query_timeout: float = QUERY_TIMEOUT_SECONDS
    display_timezone: str = "Asia/Taipei"
    vocabulary_api_url: str = DEFAULT_VOCABULARY_API_URL
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    limits: TraversalLimits = Field(default_factory=TraversalLimits)

    @field_validator("display_timezone")
    @classmethod
    def timezone_must_exist(cls, v: str) -> str:
        """Reject names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


def _split_origins(value: Optional[str]) -> list[str]:
    if not value:
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def load_settings() -> Settings:
    """Build settings from the environment (uncached)."""
    return Settings(
        azure_devops_pat=os.getenv("AZURE_DEVOPS_PAT") or None,
        azure_devops_org_url=os.getenv("AZURE_DEVOPS_ORG_URL") or None,
        azure_devops_project=os.getenv("AZURE_DEVOPS_PROJECT") or None,
        profile_url=os.getenv("AZURE_DEVOPS_PROFILE_URL", DEFAULT_PROFILE_URL),
        http_timeout=float(os.getenv("DEVOPS_MCP_HTTP_TIMEOUT", "30")),
        query_timeout=float(os.getenv("DEVOPS_MCP_QUERY_TIMEOUT", str(QUERY_TIMEOUT_SECONDS))),
        display_timezone=os.getenv("DEVOPS_MCP_DISPLAY_TIMEZONE", "Asia/Taipei"),
        vocabulary_api_url=os.getenv("VOCABULARY_API_URL", DEFAULT_VOCABULARY_API_URL),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS")),
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return load_settings()
