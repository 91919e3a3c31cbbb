"""Parent-hierarchy resolver.

Walks ``System.LinkTypes.Hierarchy-Reverse`` links upward from a work item
until it meets a Feature or Epic. The remote graph is untrusted: it may hold
cycles, dangling ids or nodes with many parents, so the walk is bounded by
depth, by the number of visited items and by the number of parent links
examined per node. Hitting a bound is a "give up" signal, not an error.

The walk is depth-first with first-match semantics: the whole ancestry of the
first parent link is explored before the second link is looked at.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from . import errors
from .client import WorkItemClient
from .config import TraversalLimits
from .models import WorkItem, is_valid_work_item_id

logger = logging.getLogger("devops-core.hierarchy")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class _Frame:
    item_id: int
    depth: int
    item: Optional[WorkItem] = None


class HierarchyResolver:
    """Find the nearest root-type ancestor of a work item.

    One resolver call owns its visited set; the resolver itself holds no
    per-walk state, so concurrent calls never share mutable data.
    """

    def __init__(
        self,
        client: WorkItemClient,
        limits: Optional[TraversalLimits] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.limits = limits or TraversalLimits()
        self._sleep = sleep

    async def resolve_root_ancestor(self, start_id: int, include_self: bool = True) -> Optional[WorkItem]:
        """Resolve starting from an id; the start item is fetched by the walk."""
        return await self._walk(_Frame(start_id, 0), include_self)

    async def resolve_from_item(self, item: WorkItem, include_self: bool = True) -> Optional[WorkItem]:
        """Resolve starting from an item already fetched with its relations."""
        return await self._walk(_Frame(item.id, 0, item), include_self)

    def _can_expand(self, frame: _Frame, visited: set[int]) -> bool:
        if frame.item_id in visited:
            logger.info(f"Work item {frame.item_id} already visited, skipping")
            return False
        if frame.depth > self.limits.max_depth:
            logger.info(f"Depth limit reached at work item {frame.item_id}")
            return False
        if len(visited) > self.limits.max_visited:
            logger.info(f"Visited limit ({self.limits.max_visited}) reached, skipping {frame.item_id}")
            return False
        if not is_valid_work_item_id(frame.item_id):
            logger.warning(f"Invalid work item id: {frame.item_id}")
            return False
        return True

    async def _fetch_branch(self, frame: _Frame) -> Optional[WorkItem]:
        """Fetch one node; branch-local failures yield None."""
        if frame.depth > 0:
            await self._sleep(self.limits.step_delay_ms / 1000)

        try:
            return await self.client.fetch_item(frame.item_id, include_relations=True)
        except errors.NotFoundError:
            logger.info(f"Work item {frame.item_id} does not exist or is not accessible")
            return None
        except errors.RateLimitedError:
            logger.warning(f"Rate limited, skipping work item {frame.item_id}")
            return None
        except errors.RemoteError as e:
            if frame.depth == 0:
                raise
            logger.warning(f"Skipping work item {frame.item_id} after API error {e.status}")
            return None

    async def _walk(self, start: _Frame, include_self: bool) -> Optional[WorkItem]:
        visited: set[int] = set()
        stack = [start]

        while stack:
            frame = stack.pop()
            if not self._can_expand(frame, visited):
                continue

            # Mark before fetching so a link back to this id cannot re-enter
            visited.add(frame.item_id)

            item = frame.item or await self._fetch_branch(frame)
            if item is None:
                continue

            logger.info(f"Work item {item.id}: {item.title} ({item.type})")

            if item.is_root_type and (include_self or frame.depth > 0):
                logger.info(f"Found {item.type}: {item.title}")
                return item

            relations = item.parent_relations(self.limits.max_parent_relations)
            parent_ids = item.parent_ids(self.limits.max_parent_relations)
            if len(parent_ids) < len(relations):
                logger.warning(f"Work item {item.id} has malformed parent links, ignoring them")

            # Reverse so the first parent link is popped first
            for parent_id in reversed(parent_ids):
                stack.append(_Frame(parent_id, frame.depth + 1))

        logger.info(f"No Feature or Epic found above work item {start.item_id}")
        return None


async def resolve_with_timeout(
    resolver: HierarchyResolver,
    start: WorkItem,
    include_self: bool,
    timeout: float,
) -> Optional[WorkItem]:
    """Run a walk under a wall-clock budget.

    Raises:
        QueryTimeoutError: the budget ran out before the walk finished
    """
    try:
        return await asyncio.wait_for(resolver.resolve_from_item(start, include_self), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"Hierarchy query for work item {start.id} timed out after {timeout}s")
        raise errors.QueryTimeoutError(timeout) from e
