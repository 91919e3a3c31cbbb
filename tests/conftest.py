"""Shared fixtures: an in-memory Azure DevOps backend behind httpx.MockTransport."""
import re
from typing import Optional

import httpx
import pytest
from pydantic import SecretStr

from devops_core.config import DEFAULT_PROFILE_URL, Settings
from devops_core.models import PARENT_RELATION, Credentials

ORG_URL = "https://dev.azure.com/contoso"
PAT = "super-secret-pat-value"

_ITEM_PATH = re.compile(r"/_apis/wit/workitems/(\d+)$")


def make_item(
    item_id: int,
    item_type: str = "Task",
    parents: tuple = (),
    title: Optional[str] = None,
    extra_relations: Optional[list] = None,
    **fields,
) -> dict:
    """Build a work item payload shaped like the REST API's."""
    relations = [
        {
            "rel": PARENT_RELATION,
            "url": f"{ORG_URL}/_apis/wit/workItems/{parent}",
            "attributes": {"isLocked": False, "name": "Parent"},
        }
        for parent in parents
    ]
    relations.extend(extra_relations or [])

    payload_fields = {
        "System.Id": item_id,
        "System.Title": title or f"{item_type} {item_id}",
        "System.WorkItemType": item_type,
        "System.State": "Active",
        "System.CreatedBy": {"displayName": "Mei Lin", "uniqueName": "mei@contoso.com"},
        "System.CreatedDate": "2024-01-15T10:30:00.123Z",
        "System.ChangedDate": "2024-02-01T02:05:00Z",
    }
    payload_fields.update(fields)

    return {
        "id": item_id,
        "rev": 3,
        "fields": payload_fields,
        "relations": relations,
        "url": f"{ORG_URL}/_apis/wit/workItems/{item_id}",
    }


IDENTITY = {
    "id": "7d1f3c2a-0000-4000-8000-000000000001",
    "displayName": "Mei Lin",
    "emailAddress": "mei@contoso.com",
    "descriptor": "aad.abc",
}


class FakeDevOps:
    """Serves work items and the profile endpoint; records every request."""

    def __init__(self, items=(), failures=None, identity_status: int = 200, identity_body: str = ""):
        self.items = {item["id"]: item for item in items}
        # item id -> (status, body, headers)
        self.failures = failures or {}
        self.identity_status = identity_status
        self.identity_body = identity_body
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if str(request.url).startswith(DEFAULT_PROFILE_URL.split("?")[0]):
            if self.identity_status != 200:
                return httpx.Response(self.identity_status, text=self.identity_body)
            return httpx.Response(200, json=IDENTITY)

        match = _ITEM_PATH.search(request.url.path)
        if not match:
            return httpx.Response(400, text="unexpected request")

        item_id = int(match.group(1))
        if item_id in self.failures:
            status, body, headers = self.failures[item_id]
            return httpx.Response(status, text=body, headers=headers)
        if item_id not in self.items:
            return httpx.Response(404, json={"message": f"TF401232: Work item {item_id} does not exist"})
        return httpx.Response(200, json=self.items[item_id])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def fetched_ids(self) -> list[int]:
        ids = []
        for request in self.requests:
            match = _ITEM_PATH.search(request.url.path)
            if match:
                ids.append(int(match.group(1)))
        return ids


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(pat=SecretStr(PAT), org_url=ORG_URL)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
