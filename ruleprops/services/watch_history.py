"""Reductions over per-item watch history."""

from __future__ import annotations

import logging
from datetime import datetime
from functools import reduce
from typing import Callable, Iterable, Sequence

from ..models import MediaItem, ReconciledUser, WatchEvent
from ..utils import timestamp_to_datetime
from .hierarchy import SubtreeWalker
from .provider import MetadataProvider

logger = logging.getLogger(__name__)


def sort_descending(
    events: Iterable[WatchEvent], key: Callable[[WatchEvent], int]
) -> list[WatchEvent]:
    """Stable ascending sort, then reversed.

    Among equal keys the last fetched event comes first. Existing rules rely
    on this ordering, so it must not be replaced by ``reverse=True``.
    """

    ordered = sorted(events, key=key)
    ordered.reverse()
    return ordered


def _season_index(event: WatchEvent) -> int:
    return event.season_index if event.season_index is not None else -1


def _episode_index(event: WatchEvent) -> int:
    return event.episode_index if event.episode_index is not None else -1


class WatchHistoryAggregator:
    """Fetch watch events and reduce them to viewing statistics."""

    def __init__(self, provider: MetadataProvider, walker: SubtreeWalker):
        self._provider = provider
        self._walker = walker

    async def events(self, rating_key: str) -> list[WatchEvent]:
        return list(await self._provider.get_watch_history(rating_key))

    async def events_or_none(self, rating_key: str) -> list[WatchEvent] | None:
        """Return the item's events, or ``None`` when the fetch fails."""

        try:
            return await self.events(rating_key)
        except Exception as exc:
            logger.debug("Watch history for %s unavailable: %s", rating_key, exc)
            return None

    @staticmethod
    def viewer_ids(events: Iterable[WatchEvent]) -> list[int]:
        """Return unique account ids in first-seen order."""

        return list(dict.fromkeys(event.account_id for event in events))

    @staticmethod
    def latest_view(events: Sequence[WatchEvent]) -> datetime | None:
        if not events:
            return None
        return timestamp_to_datetime(max(event.viewed_at for event in events))

    @staticmethod
    def last_watched(events: Sequence[WatchEvent]) -> datetime | None:
        """Return when the furthest-along episode was last viewed.

        Events are narrowed to the highest season index, then to the highest
        episode index within it; the newest view among those wins.
        """

        if not events:
            return None
        by_season = sort_descending(events, _season_index)
        top_season = _season_index(by_season[0])
        in_season = [event for event in by_season if _season_index(event) == top_season]

        by_episode = sort_descending(in_season, _episode_index)
        top_episode = _episode_index(by_episode[0])
        latest = [event for event in by_episode if _episode_index(event) == top_episode]
        return WatchHistoryAggregator.latest_view(latest)

    async def view_count(self, rating_key: str) -> int:
        events = await self.events_or_none(rating_key)
        return len(events) if events else 0

    async def last_viewed_at(self, rating_key: str) -> datetime | None:
        events = await self.events_or_none(rating_key)
        return self.latest_view(events) if events else None

    async def viewed_episode_count(self, item: MediaItem) -> int:
        histories = await self._walker.map_episodes(
            item, lambda episode: self.events(episode.rating_key)
        )
        return sum(1 for history in histories if history)

    async def total_views(self, item: MediaItem) -> int:
        histories = await self._walker.map_episodes(
            item, lambda episode: self.events(episode.rating_key)
        )
        return sum(len(history) for history in histories)

    async def _episode_viewers(self, episode: MediaItem) -> frozenset[int]:
        # An unreadable history counts as nobody having watched the episode.
        events = await self.events_or_none(episode.rating_key)
        return frozenset(self.viewer_ids(events or ()))

    async def viewers_of_every_episode(
        self, item: MediaItem, users: Sequence[ReconciledUser]
    ) -> list[ReconciledUser]:
        """Return the users present in the viewer list of every episode."""

        per_episode = await self._walker.map_episodes(item, self._episode_viewers)
        surviving = reduce(
            lambda remaining, viewers: remaining & viewers,
            per_episode,
            frozenset(user.id for user in users),
        )
        return [user for user in users if user.id in surviving]
