"""Read-through resolution of an item and its ancestors."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models import MediaItem
from .provider import MetadataProvider

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResolvedMetadata:
    """An item's full metadata plus whichever ancestors could be fetched."""

    metadata: MediaItem
    parent: MediaItem | None = None
    grandparent: MediaItem | None = None

    @property
    def chain(self) -> tuple[MediaItem, ...]:
        """Return the item followed by its available ancestors."""

        return tuple(
            entry
            for entry in (self.metadata, self.parent, self.grandparent)
            if entry is not None
        )


class MetadataResolver:
    """Fetch metadata for an item, then its parent and grandparent."""

    def __init__(self, provider: MetadataProvider):
        self._provider = provider

    async def resolve(self, item: MediaItem) -> ResolvedMetadata:
        # The library listing is often sparse; the metadata endpoint is complete.
        metadata = await self._provider.get_metadata(item.rating_key)
        parent = await self._fetch_ancestor(metadata.parent_rating_key, "parent")
        grandparent = await self._fetch_ancestor(
            metadata.grandparent_rating_key, "grandparent"
        )
        return ResolvedMetadata(metadata=metadata, parent=parent, grandparent=grandparent)

    async def _fetch_ancestor(self, rating_key: str | None, relation: str) -> MediaItem | None:
        if not rating_key:
            return None
        try:
            return await self._provider.get_metadata(rating_key)
        except Exception as exc:
            logger.warning(
                "Could not fetch %s metadata %s, continuing without it: %s",
                relation,
                rating_key,
                exc,
            )
            return None
