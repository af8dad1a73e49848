"""Resolve rule property ids into typed values for a catalog item."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from ..config import Settings
from ..errors import UnsupportedPropertyError
from ..models import (
    UNKNOWN,
    DataType,
    MediaItem,
    MediaPart,
    Playlist,
    PropertyValue,
    ReconciledUser,
    RuleContext,
)
from ..properties import Application, PropertyCatalog, PropertyDescriptor, default_catalog
from ..utils import as_number, parse_release_date, timestamp_to_datetime, trimmed
from .collections import CollectionLabelAggregator
from .hierarchy import SubtreeWalker
from .identity import IdentityReconciler
from .metadata import MetadataResolver, ResolvedMetadata
from .provider import MetadataProvider
from .watch_history import WatchHistoryAggregator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EvaluationContext:
    """Everything a property handler may read during one evaluation."""

    descriptor: PropertyDescriptor
    item: MediaItem
    resolved: ResolvedMetadata
    data_type: DataType | None
    rule_context: RuleContext | None
    provider: MetadataProvider
    walker: SubtreeWalker
    history: WatchHistoryAggregator
    tags: CollectionLabelAggregator
    identities: IdentityReconciler

    @property
    def metadata(self) -> MediaItem:
        return self.resolved.metadata

    async def users(self) -> list[ReconciledUser]:
        return await self.identities.fetch(self.provider)


PropertyHandler = Callable[[EvaluationContext], Awaitable[PropertyValue]]

PROPERTY_HANDLERS: dict[str, PropertyHandler] = {}


def handles(*names: str) -> Callable[[PropertyHandler], PropertyHandler]:
    """Register the decorated coroutine for the given property names."""

    def decorator(func: PropertyHandler) -> PropertyHandler:
        for name in names:
            if name in PROPERTY_HANDLERS:
                raise ValueError(f"Handler for {name} registered twice")
            PROPERTY_HANDLERS[name] = func
        return func

    return decorator


def _first_media(metadata: MediaItem) -> MediaPart | None:
    return metadata.media[0] if metadata.media else None


def _by_index(item: MediaItem) -> int:
    return item.index if item.index is not None else -1


@handles("addDate")
async def _add_date(ctx: EvaluationContext) -> PropertyValue:
    return timestamp_to_datetime(ctx.metadata.added_at)


@handles("releaseDate")
async def _release_date(ctx: EvaluationContext) -> PropertyValue:
    return parse_release_date(ctx.metadata.originally_available_at)


@handles("rating_critics")
async def _rating_critics(ctx: EvaluationContext) -> PropertyValue:
    return as_number(ctx.metadata.rating)


@handles("rating_audience")
async def _rating_audience(ctx: EvaluationContext) -> PropertyValue:
    return as_number(ctx.metadata.audience_rating)


@handles("rating_user")
async def _rating_user(ctx: EvaluationContext) -> PropertyValue:
    return as_number(ctx.metadata.user_rating)


@handles("people")
async def _people(ctx: EvaluationContext) -> PropertyValue:
    roles = ctx.metadata.roles
    return [role.tag for role in roles] if roles is not None else None


@handles("genre")
async def _genre(ctx: EvaluationContext) -> PropertyValue:
    return ctx.tags.genres(ctx.resolved)


@handles("labels")
async def _labels(ctx: EvaluationContext) -> PropertyValue:
    return ctx.tags.labels(ctx.resolved)


@handles("fileVideoResolution")
async def _file_video_resolution(ctx: EvaluationContext) -> PropertyValue:
    media = _first_media(ctx.metadata)
    return (media.video_resolution or None) if media else None


@handles("fileBitrate")
async def _file_bitrate(ctx: EvaluationContext) -> PropertyValue:
    media = _first_media(ctx.metadata)
    return media.bitrate if media and media.bitrate is not None else 0


@handles("fileVideoCodec")
async def _file_video_codec(ctx: EvaluationContext) -> PropertyValue:
    media = _first_media(ctx.metadata)
    return (media.video_codec or None) if media else None


@handles("collections")
async def _collections(ctx: EvaluationContext) -> PropertyValue:
    return ctx.tags.count_unmanaged(ctx.metadata.collections, ctx.rule_context)


@handles("collection_names")
async def _collection_names(ctx: EvaluationContext) -> PropertyValue:
    return ctx.tags.names(ctx.metadata.collections) or None


@handles("sw_collections_including_parent")
async def _collections_including_parent(ctx: EvaluationContext) -> PropertyValue:
    combined = ctx.tags.combined_collections(ctx.resolved)
    return ctx.tags.count_unmanaged(combined, ctx.rule_context)


@handles("sw_collection_names_including_parent")
async def _collection_names_including_parent(ctx: EvaluationContext) -> PropertyValue:
    return ctx.tags.names(ctx.tags.combined_collections(ctx.resolved))


@handles("seenBy")
async def _seen_by(ctx: EvaluationContext) -> PropertyValue:
    users = await ctx.users()
    events = await ctx.history.events_or_none(ctx.metadata.rating_key)
    if not events:
        return []
    return ctx.identities.usernames_for(users, ctx.history.viewer_ids(events))


@handles("viewCount")
async def _view_count(ctx: EvaluationContext) -> PropertyValue:
    return await ctx.history.view_count(ctx.metadata.rating_key)


@handles("lastViewedAt")
async def _last_viewed_at(ctx: EvaluationContext) -> PropertyValue:
    return await ctx.history.last_viewed_at(ctx.metadata.rating_key)


@handles("watched_authenticated_user")
async def _watched_authenticated_user(ctx: EvaluationContext) -> PropertyValue:
    metadata = ctx.metadata
    data_type = ctx.data_type or DataType.for_item_type(metadata.type)
    section_id = (
        ctx.item.library_section_id
        if ctx.item.library_section_id is not None
        else metadata.library_section_id
    )
    watched = await ctx.provider.get_watched(section_id, data_type)
    return any(entry.rating_key == metadata.rating_key for entry in watched)


async def _subtree_playlists(ctx: EvaluationContext) -> list[Playlist]:
    metadata = ctx.metadata
    if metadata.is_leaf:
        return list(await ctx.provider.get_playlists(metadata.rating_key))

    per_episode = await ctx.walker.map_episodes(
        metadata, lambda episode: ctx.provider.get_playlists(episode.rating_key)
    )
    unique: dict[str, Playlist] = {}
    for playlists in per_episode:
        for playlist in playlists:
            unique.setdefault(playlist.id, playlist)
    return list(unique.values())


@handles("playlists")
async def _playlists(ctx: EvaluationContext) -> PropertyValue:
    return len(await _subtree_playlists(ctx))


@handles("playlist_names")
async def _playlist_names(ctx: EvaluationContext) -> PropertyValue:
    return trimmed(playlist.title for playlist in await _subtree_playlists(ctx))


@handles("sw_episodes")
async def _episodes(ctx: EvaluationContext) -> PropertyValue:
    metadata = ctx.metadata
    if metadata.type == "season":
        # Seasons do not report leafCount.
        return len(await ctx.walker.children(metadata))
    return metadata.leaf_count if metadata.leaf_count is not None else 0


@handles("sw_viewedEpisodes")
async def _viewed_episodes(ctx: EvaluationContext) -> PropertyValue:
    return await ctx.history.viewed_episode_count(ctx.metadata)


@handles("sw_amountOfViews")
async def _amount_of_views(ctx: EvaluationContext) -> PropertyValue:
    return await ctx.history.total_views(ctx.metadata)


@handles("sw_allEpisodesSeenBy")
async def _all_episodes_seen_by(ctx: EvaluationContext) -> PropertyValue:
    users = await ctx.users()
    survivors = await ctx.history.viewers_of_every_episode(ctx.metadata, users)
    return [user.username for user in survivors]


@handles("sw_watchers")
async def _watchers(ctx: EvaluationContext) -> PropertyValue:
    users = await ctx.users()
    events = await ctx.history.events(ctx.metadata.rating_key)
    return ctx.identities.usernames_for(users, ctx.history.viewer_ids(events))


@handles("sw_lastWatched")
async def _last_watched(ctx: EvaluationContext) -> PropertyValue:
    events = await ctx.history.events(ctx.metadata.rating_key)
    return ctx.history.last_watched(events)


@handles("sw_lastEpisodeAddedAt")
async def _last_episode_added_at(ctx: EvaluationContext) -> PropertyValue:
    metadata = ctx.metadata
    if metadata.is_leaf:
        return timestamp_to_datetime(metadata.added_at)

    seasons = sorted(await ctx.walker.seasons(metadata), key=_by_index)
    if not seasons:
        return None
    episodes = sorted(await ctx.walker.children(seasons[-1]), key=_by_index)
    if not episodes:
        return None
    return timestamp_to_datetime(episodes[-1].added_at)


class PropertyEvaluator:
    """Evaluate rule properties against items served by a ``MetadataProvider``.

    Each call is independent. Failures never escape ``evaluate``: they are
    logged and reported as ``UNKNOWN`` so that callers can tell "could not
    determine" apart from a legitimately empty ``None``.
    """

    def __init__(
        self,
        provider: MetadataProvider,
        catalog: PropertyCatalog | None = None,
        *,
        concurrency: int = 8,
        application: Application = Application.PLEX,
    ):
        self._provider = provider
        self._catalog = catalog if catalog is not None else default_catalog()
        self._application = application
        self._resolver = MetadataResolver(provider)
        self._walker = SubtreeWalker(provider, concurrency)
        self._history = WatchHistoryAggregator(provider, self._walker)
        self._tags = CollectionLabelAggregator()
        self._identities = IdentityReconciler()

    @classmethod
    def from_settings(
        cls,
        provider: MetadataProvider,
        settings: Settings,
        catalog: PropertyCatalog | None = None,
    ) -> "PropertyEvaluator":
        return cls(provider, catalog, concurrency=settings.evaluation_concurrency)

    @property
    def catalog(self) -> PropertyCatalog:
        return self._catalog

    def supported_properties(self) -> tuple[PropertyDescriptor, ...]:
        """Return the catalog descriptors that have a registered handler."""

        return tuple(
            descriptor
            for descriptor in self._catalog.for_application(self._application)
            if descriptor.name in PROPERTY_HANDLERS
        )

    async def evaluate(
        self,
        property_id: int,
        item: MediaItem,
        data_type: DataType | None = None,
        rule_context: RuleContext | None = None,
    ) -> PropertyValue:
        """Return the property's value, ``None`` when empty or ``UNKNOWN`` on failure."""

        property_name = str(property_id)
        try:
            descriptor = self._catalog.lookup(property_id, self._application)
            property_name = descriptor.name
            handler = PROPERTY_HANDLERS.get(descriptor.name)
            if handler is None:
                raise UnsupportedPropertyError(descriptor.id, int(self._application))

            resolved = await self._resolver.resolve(item)
            context = EvaluationContext(
                descriptor=descriptor,
                item=item,
                resolved=resolved,
                data_type=data_type,
                rule_context=rule_context,
                provider=self._provider,
                walker=self._walker,
                history=self._history,
                tags=self._tags,
                identities=self._identities,
            )
            return await handler(context)
        except Exception as exc:
            logger.warning(
                "Property %s failed for item %s: %s",
                property_name,
                getattr(item, "rating_key", item),
                exc,
            )
            return UNKNOWN

    async def evaluate_many(
        self,
        property_ids: Iterable[int],
        item: MediaItem,
        data_type: DataType | None = None,
        rule_context: RuleContext | None = None,
    ) -> dict[int, PropertyValue]:
        """Evaluate several properties of one item concurrently."""

        ids = list(dict.fromkeys(property_ids))
        values = await asyncio.gather(
            *(self.evaluate(pid, item, data_type, rule_context) for pid in ids)
        )
        return dict(zip(ids, values))
