"""Remote work item client for the Azure DevOps REST API.

Pure request/response: every non-2xx answer is mapped onto the error
taxonomy in ``errors`` and raised. Retry policy belongs to the caller.
"""
import base64
import logging
from typing import Optional

import httpx

from . import errors
from .config import API_VERSION, DEFAULT_PROFILE_URL
from .models import Credentials, Identity, WorkItem

logger = logging.getLogger("devops-core.client")

EXPIRED_MARKER = "expired"


def build_auth_headers(credentials: Credentials) -> dict[str, str]:
    """Basic auth with an empty user name and the PAT as password."""
    token = base64.b64encode(f":{credentials.pat.get_secret_value()}".encode()).decode()
    return {
        "Authorization": f"Basic {token}",
        "Accept": "application/json",
    }


def classify_auth_failure(status_code: int, body: str) -> errors.AuthError:
    """Split a 401/403 answer into expired, invalid or forbidden."""
    if status_code == 403:
        return errors.AuthError(errors.AuthFailure.FORBIDDEN)
    if EXPIRED_MARKER in body.lower():
        return errors.AuthError(errors.AuthFailure.EXPIRED)
    return errors.AuthError(errors.AuthFailure.INVALID)


def raise_for_response(response: httpx.Response, item_id: Optional[int] = None) -> None:
    """Raise the taxonomy error matching a non-2xx response."""
    if response.is_success:
        return

    body = response.text
    status = response.status_code

    if status == 404 and item_id is not None:
        raise errors.NotFoundError(item_id)
    if status in (401, 403):
        raise classify_auth_failure(status, body)
    if status == 429:
        raise errors.RateLimitedError(response.headers.get("Retry-After"))
    raise errors.RemoteError(status, body, response.reason_phrase)


class WorkItemClient:
    """Fetches work items and the authenticated identity for one credential.

    The client does not own credentials beyond the lifetime of an operation;
    callers create one per tool call and close it afterwards (or pass in an
    ``httpx.AsyncClient`` they manage themselves).
    """

    def __init__(
        self,
        credentials: Credentials,
        http_client: Optional[httpx.AsyncClient] = None,
        profile_url: str = DEFAULT_PROFILE_URL,
        timeout: float = 30.0,
    ):
        self.credentials = credentials
        self.profile_url = profile_url
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "WorkItemClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def build_item_url(self, item_id: int) -> str:
        base = self.credentials.base_url
        if self.credentials.project:
            base = f"{base}/{self.credentials.project}"
        return f"{base}/_apis/wit/workitems/{item_id}"

    async def fetch_item(self, item_id: int, include_relations: bool = False) -> WorkItem:
        """Fetch one work item, optionally with its relation links.

        Raises:
            NotFoundError: the item does not exist or is not accessible
            AuthError: the credential was rejected
            RateLimitedError: the backend throttled the request
            RemoteError: any other non-2xx answer
        """
        url = self.build_item_url(item_id)
        params = {"api-version": API_VERSION}
        if include_relations:
            params["$expand"] = "relations"

        response = await self._http.get(url, params=params, headers=build_auth_headers(self.credentials))
        logger.info(f"GET {url} - work item {item_id} - status: {response.status_code}")

        if not response.is_success:
            logger.warning(f"API error for work item {item_id}: {response.status_code} {response.text[:200]}")
        raise_for_response(response, item_id)

        return WorkItem.model_validate(response.json())

    async def fetch_identity(self) -> Identity:
        """Fetch the profile of the user the PAT belongs to."""
        response = await self._http.get(self.profile_url, headers=build_auth_headers(self.credentials))
        logger.info(f"Identity check - status: {response.status_code}")
        raise_for_response(response)
        return Identity.model_validate(response.json())
