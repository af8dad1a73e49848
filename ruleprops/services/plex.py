"""Plex Media Server and plex.tv adapter implementing ``MetadataProvider``."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ElementTree
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..errors import ProviderError
from ..models import (
    DataType,
    LocalUser,
    MediaItem,
    Playlist,
    RemoteIdentity,
    WatchEvent,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Return an ``httpx.AsyncClient`` pointed at the configured server."""

    return httpx.AsyncClient(
        base_url=settings.plex_url,
        timeout=httpx.Timeout(settings.plex_timeout_seconds, connect=10.0),
    )


class PlexApiClient:
    """Thin wrapper around the Plex HTTP API.

    Every method either returns parsed models or raises ``ProviderError``.
    Responses are not cached.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        if not settings.plex_token:
            raise ValueError("A Plex token is required when initialising PlexApiClient")
        self._settings = settings
        self._client = http_client

    def _headers(self, accept: str = "application/json") -> dict[str, str]:
        return {
            "Accept": accept,
            "X-Plex-Token": self._settings.plex_token or "",
            "X-Plex-Product": self._settings.app_name,
        }

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        accept: str = "application/json",
    ) -> httpx.Response:
        try:
            response = await self._client.get(url, params=params, headers=self._headers(accept))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderError(f"Plex request to {url} failed: {exc}") from exc
        return response

    async def _container(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        response = await self._get(path, params=params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(f"Plex returned non-JSON content for {path}") from exc
        container = payload.get("MediaContainer") if isinstance(payload, dict) else None
        if not isinstance(container, dict):
            raise ProviderError(f"Unexpected Plex response structure for {path}")
        return container

    @staticmethod
    def _parse(model: type[ModelT], entries: Any, path: str) -> list[ModelT]:
        if not isinstance(entries, list):
            return []
        try:
            return [model.model_validate(entry) for entry in entries]
        except ValidationError as exc:
            raise ProviderError(f"Malformed {model.__name__} data from {path}: {exc}") from exc

    async def get_metadata(self, rating_key: str) -> MediaItem:
        path = f"/library/metadata/{rating_key}"
        container = await self._container(path)
        items = self._parse(MediaItem, container.get("Metadata"), path)
        if not items:
            raise ProviderError(f"No metadata found for {rating_key}")
        return items[0]

    async def get_children_metadata(self, rating_key: str) -> list[MediaItem]:
        path = f"/library/metadata/{rating_key}/children"
        container = await self._container(path)
        return self._parse(MediaItem, container.get("Metadata"), path)

    async def get_watch_history(self, rating_key: str) -> list[WatchEvent]:
        """Return every recorded view of the item, following pagination."""

        path = "/status/sessions/history/all"
        page_size = self._settings.plex_history_page_size
        events: list[WatchEvent] = []
        start = 0

        while True:
            container = await self._container(
                path,
                params={
                    "metadataItemID": rating_key,
                    "sort": "viewedAt:desc",
                    "X-Plex-Container-Start": start,
                    "X-Plex-Container-Size": page_size,
                },
            )
            page = self._parse(WatchEvent, container.get("Metadata"), path)
            events.extend(page)
            start += len(page)

            if len(page) < page_size:
                break
            total = container.get("totalSize")
            if total is not None and start >= int(total):
                break
            logger.debug("Fetching next history page for %s at offset %d", rating_key, start)

        return events

    async def get_playlists(self, rating_key: str) -> list[Playlist]:
        """Return the video playlists that contain the item directly."""

        path = "/playlists"
        container = await self._container(path, params={"playlistType": "video"})
        playlists = self._parse(Playlist, container.get("Metadata"), path)

        containing: list[Playlist] = []
        for playlist in playlists:
            items_path = f"/playlists/{playlist.id}/items"
            items = await self._container(items_path)
            entries = items.get("Metadata") or []
            if any(str(entry.get("ratingKey")) == rating_key for entry in entries):
                containing.append(playlist)
        return containing

    async def get_users(self) -> list[LocalUser]:
        path = "/accounts"
        container = await self._container(path)
        return self._parse(LocalUser, container.get("Account"), path)

    async def get_user_data_from_plex_tv(self) -> list[RemoteIdentity]:
        """Return the identities shared with this server on plex.tv."""

        url = f"{self._settings.plex_tv_url}/api/users"
        response = await self._get(url, accept="application/xml")
        try:
            root = ElementTree.fromstring(response.text)
        except ElementTree.ParseError as exc:
            raise ProviderError("plex.tv returned malformed user data") from exc

        identities: list[RemoteIdentity] = []
        for node in root.iter("User"):
            raw_id = node.attrib.get("id")
            if not raw_id:
                continue
            try:
                identities.append(
                    RemoteIdentity(id=int(raw_id), username=node.attrib.get("username"))
                )
            except ValueError:
                logger.warning("Skipping plex.tv user with invalid id %r", raw_id)
        return identities

    async def get_watched(
        self, library_section_id: int | None, data_type: DataType
    ) -> list[MediaItem]:
        """Return the items of a library section the token owner has watched."""

        if library_section_id is None:
            raise ProviderError("A library section is required to list watched items")
        path = f"/library/sections/{library_section_id}/all"
        container = await self._container(
            path, params={"type": int(data_type), "unwatched": 0}
        )
        return self._parse(MediaItem, container.get("Metadata"), path)
