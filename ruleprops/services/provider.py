"""Interface the engine expects from a metadata/watch-history provider."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from ..models import (
    DataType,
    LocalUser,
    MediaItem,
    Playlist,
    RemoteIdentity,
    WatchEvent,
)


@runtime_checkable
class MetadataProvider(Protocol):
    """Read-only access to the media server and its identity service.

    Implementations raise on failure; the engine decides which failures
    degrade and which make an evaluation unknown.
    """

    async def get_metadata(self, rating_key: str) -> MediaItem: ...

    async def get_children_metadata(self, rating_key: str) -> Sequence[MediaItem]: ...

    async def get_watch_history(self, rating_key: str) -> Sequence[WatchEvent]: ...

    async def get_playlists(self, rating_key: str) -> Sequence[Playlist]: ...

    async def get_users(self) -> Sequence[LocalUser]: ...

    async def get_user_data_from_plex_tv(self) -> Sequence[RemoteIdentity]: ...

    async def get_watched(
        self, library_section_id: int | None, data_type: DataType
    ) -> Sequence[MediaItem]: ...
