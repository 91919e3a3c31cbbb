"""Pydantic models for Azure DevOps payloads.

Work items are read-only snapshots of the REST payload. Field access goes
through the raw ``fields`` mapping so unknown or custom fields survive.
"""
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .config import MAX_WORK_ITEM_ID, MIN_WORK_ITEM_ID

ROOT_TYPES = frozenset({"Feature", "Epic"})
PARENT_RELATION = "System.LinkTypes.Hierarchy-Reverse"

_WORK_ITEM_URL_ID = re.compile(r"workItems/(\d+)$", re.IGNORECASE)


def is_valid_work_item_id(value: Any) -> bool:
    """Check a work item id is a positive integer within the sane range."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_WORK_ITEM_ID <= value <= MAX_WORK_ITEM_ID


class Credentials(BaseModel):
    """Per-call backend credentials. The token is never rendered in cleartext."""

    pat: SecretStr = SecretStr("")
    org_url: str = ""
    project: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.pat.get_secret_value()) and bool(self.org_url)

    @property
    def base_url(self) -> str:
        return self.org_url.rstrip("/")


class IdentityRef(BaseModel):
    """A user reference embedded in work item fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    display_name: str = Field("", alias="displayName")
    unique_name: Optional[str] = Field(None, alias="uniqueName")


class Identity(BaseModel):
    """The authenticated user behind a credential."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    display_name: str = Field("", alias="displayName")
    email: str = Field("", alias="emailAddress")
    descriptor: Optional[str] = None


class Relation(BaseModel):
    """A link from one work item to another resource."""

    model_config = ConfigDict(extra="ignore")

    rel: str = ""
    url: Optional[str] = None
    attributes: Optional[dict[str, Any]] = None

    @property
    def is_parent(self) -> bool:
        return self.rel == PARENT_RELATION

    @property
    def target_id(self) -> Optional[int]:
        """Id of the linked work item, or None when the url is not a work item url."""
        if not self.url:
            return None
        match = _WORK_ITEM_URL_ID.search(self.url)
        if not match:
            return None
        return int(match.group(1))


class WorkItem(BaseModel):
    """A work item snapshot as returned by ``_apis/wit/workitems/{id}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    rev: Optional[int] = None
    url: str = ""
    fields: dict[str, Any] = Field(default_factory=dict)
    relations: Optional[list[Relation]] = None
    links: Optional[dict[str, Any]] = Field(None, alias="_links")

    @property
    def type(self) -> str:
        return self.fields.get("System.WorkItemType", "")

    @property
    def title(self) -> str:
        return self.fields.get("System.Title", "")

    @property
    def state(self) -> str:
        return self.fields.get("System.State", "")

    @property
    def assignee(self) -> Optional[IdentityRef]:
        return self._identity_field("System.AssignedTo")

    @property
    def creator(self) -> Optional[IdentityRef]:
        return self._identity_field("System.CreatedBy")

    @property
    def created_at(self) -> Optional[str]:
        return self.fields.get("System.CreatedDate")

    @property
    def changed_at(self) -> Optional[str]:
        return self.fields.get("System.ChangedDate")

    @property
    def description(self) -> Optional[str]:
        return self.fields.get("System.Description")

    @property
    def tags(self) -> Optional[str]:
        return self.fields.get("System.Tags")

    @property
    def priority(self) -> Optional[Any]:
        return self.fields.get("Microsoft.VSTS.Common.Priority")

    @property
    def severity(self) -> Optional[str]:
        return self.fields.get("Microsoft.VSTS.Common.Severity")

    @property
    def is_root_type(self) -> bool:
        return self.type in ROOT_TYPES

    def _identity_field(self, name: str) -> Optional[IdentityRef]:
        value = self.fields.get(name)
        if not value:
            return None
        if isinstance(value, str):
            # Older API versions return "Display Name <user@domain>"
            return IdentityRef(display_name=value)
        return IdentityRef.model_validate(value)

    def parent_relations(self, limit: int) -> list[Relation]:
        """First ``limit`` parent links, in payload order."""
        parents = [relation for relation in self.relations or [] if relation.is_parent]
        return parents[:limit]

    def parent_ids(self, limit: int) -> list[int]:
        """Ids of the first ``limit`` parent links; malformed links are dropped."""
        ids = []
        for relation in self.parent_relations(limit):
            target = relation.target_id
            if target is not None and is_valid_work_item_id(target):
                ids.append(target)
        return ids

    def web_url(self, org_url: str = "", project: Optional[str] = None) -> str:
        """Deep link to the work item's web view."""
        href = ((self.links or {}).get("html") or {}).get("href")
        if href:
            return href
        if not org_url:
            return self.url
        base = org_url.rstrip("/")
        if project:
            base = f"{base}/{project}"
        return f"{base}/_workitems/edit/{self.id}"
