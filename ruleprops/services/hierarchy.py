"""Traversal of the show → season → episode tree."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Sequence, TypeVar

from ..models import MediaItem
from .provider import MetadataProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SubtreeWalker:
    """Enumerate the descendants of an item with bounded concurrent fetches.

    Sibling fetches run concurrently but results always come back in the
    provider's listing order, so every fold over them is deterministic. A
    failed fetch cancels its pending siblings and propagates to the caller;
    partial subtrees are never returned.
    """

    def __init__(self, provider: MetadataProvider, concurrency: int = 8):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._provider = provider
        self._semaphore = asyncio.Semaphore(concurrency)

    async def _bounded(self, call: Callable[[], Awaitable[T]]) -> T:
        async with self._semaphore:
            return await call()

    @staticmethod
    async def _gather(aws: Iterable[Awaitable[T]]) -> list[T]:
        """Gather in order; the first failure cancels the outstanding siblings."""

        tasks = [asyncio.ensure_future(aw) for aw in aws]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def children(self, item: MediaItem) -> list[MediaItem]:
        return list(
            await self._bounded(
                lambda: self._provider.get_children_metadata(item.rating_key)
            )
        )

    async def seasons(self, item: MediaItem) -> list[MediaItem]:
        """Return the seasons below ``item``, or the item itself for a season."""

        if item.type == "season":
            return [item]
        if item.is_leaf:
            return []
        return await self.children(item)

    async def episodes(self, item: MediaItem) -> list[MediaItem]:
        """Return every episode of the subtree; an episode is its own subtree."""

        if item.type == "episode":
            return [item]
        if item.type == "movie":
            return []
        seasons = await self.seasons(item)
        per_season = await self._gather(self.children(season) for season in seasons)
        episodes = [episode for season_episodes in per_season for episode in season_episodes]
        logger.debug(
            "Walked %s %s: %d seasons, %d episodes",
            item.type,
            item.rating_key,
            len(seasons),
            len(episodes),
        )
        return episodes

    async def map_episodes(
        self,
        item: MediaItem,
        func: Callable[[MediaItem], Awaitable[T]],
    ) -> list[T]:
        """Apply ``func`` to every episode of the subtree, preserving tree order."""

        episodes = await self.episodes(item)
        return await self.map_items(episodes, func)

    async def map_items(
        self,
        items: Sequence[MediaItem],
        func: Callable[[MediaItem], Awaitable[T]],
    ) -> list[T]:
        return await self._gather(
            self._bounded(lambda entry=entry: func(entry)) for entry in items
        )
