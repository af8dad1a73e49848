"""Rule property definitions for the supported applications."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache
from typing import Iterable, Iterator, Literal

from .errors import UnsupportedPropertyError

ValueType = Literal["date", "number", "text", "text_list", "bool"]
MediaScope = Literal["both", "movie", "show"]


class Application(IntEnum):
    PLEX = 0
    RADARR = 1
    SONARR = 2
    OVERSEERR = 3


@dataclass(frozen=True)
class PropertyDescriptor:
    """Describes one property a rule can be written against."""

    id: int
    name: str
    human_name: str
    value_type: ValueType
    media_type: MediaScope = "both"
    application_id: Application = Application.PLEX


PLEX_PROPERTIES_VERSION = 3

PLEX_PROPERTIES: tuple[PropertyDescriptor, ...] = (
    PropertyDescriptor(0, "addDate", "Date added", "date"),
    PropertyDescriptor(1, "seenBy", "Viewed by (username)", "text_list"),
    PropertyDescriptor(2, "releaseDate", "Release date", "date"),
    PropertyDescriptor(3, "rating_user", "User rating (scale 1-10)", "number"),
    PropertyDescriptor(4, "people", "People involved", "text_list"),
    PropertyDescriptor(5, "viewCount", "Times viewed", "number"),
    PropertyDescriptor(6, "collections", "Present in amount of other collections", "number"),
    PropertyDescriptor(7, "lastViewedAt", "Last view date", "date"),
    PropertyDescriptor(8, "fileVideoResolution", "[list] Video resolution", "text"),
    PropertyDescriptor(9, "fileBitrate", "Bitrate", "number"),
    PropertyDescriptor(10, "fileVideoCodec", "Video codec", "text"),
    PropertyDescriptor(11, "genre", "List of genres", "text_list"),
    PropertyDescriptor(12, "sw_allEpisodesSeenBy", "Users that saw all available episodes", "text_list", "show"),
    PropertyDescriptor(13, "sw_lastWatched", "Newest episode view date", "date", "show"),
    PropertyDescriptor(14, "sw_episodes", "Amount of available episodes", "number", "show"),
    PropertyDescriptor(15, "sw_viewedEpisodes", "Amount of watched episodes", "number", "show"),
    PropertyDescriptor(16, "sw_lastEpisodeAddedAt", "Last episode added at", "date", "show"),
    PropertyDescriptor(17, "sw_amountOfViews", "Total views", "number", "show"),
    PropertyDescriptor(18, "sw_watchers", "Users that watch the show/season/episode", "text_list", "show"),
    PropertyDescriptor(19, "collection_names", "Collections media is present in (titles)", "text_list"),
    PropertyDescriptor(20, "playlists", "Present in amount of playlists", "number"),
    PropertyDescriptor(21, "playlist_names", "Playlists media is present in (titles)", "text_list"),
    PropertyDescriptor(22, "rating_critics", "Critics rating (scale 1-10)", "number"),
    PropertyDescriptor(23, "rating_audience", "Audience rating (scale 1-10)", "number"),
    PropertyDescriptor(24, "labels", "Labels", "text_list"),
    PropertyDescriptor(
        25,
        "sw_collections_including_parent",
        "Present in amount of other collections (incl. parents)",
        "number",
        "show",
    ),
    PropertyDescriptor(
        26,
        "sw_collection_names_including_parent",
        "Collections media is present in (titles, incl. parents)",
        "text_list",
        "show",
    ),
    PropertyDescriptor(27, "watched_authenticated_user", "Watched by the server owner", "bool"),
)


class PropertyCatalog:
    """Immutable registry of property descriptors keyed by application and id."""

    __slots__ = ("_by_key",)

    def __init__(self, descriptors: Iterable[PropertyDescriptor]):
        by_key: dict[tuple[int, int], PropertyDescriptor] = {}
        for descriptor in descriptors:
            key = (int(descriptor.application_id), descriptor.id)
            if key in by_key:
                raise ValueError(
                    f"Duplicate property id {descriptor.id} for application "
                    f"{descriptor.application_id}"
                )
            by_key[key] = descriptor
        self._by_key = by_key

    def lookup(
        self, property_id: int, application: Application = Application.PLEX
    ) -> PropertyDescriptor:
        """Return the descriptor registered for ``property_id``."""

        try:
            return self._by_key[(int(application), property_id)]
        except KeyError:
            raise UnsupportedPropertyError(property_id, int(application)) from None

    def for_application(self, application: Application) -> tuple[PropertyDescriptor, ...]:
        return tuple(
            descriptor
            for (app_id, _), descriptor in sorted(self._by_key.items())
            if app_id == int(application)
        )

    def names(self, application: Application = Application.PLEX) -> tuple[str, ...]:
        return tuple(descriptor.name for descriptor in self.for_application(application))

    def __contains__(self, key: object) -> bool:
        """Accept a descriptor, or a bare id which is looked up for Plex."""

        if isinstance(key, PropertyDescriptor):
            return self._by_key.get((int(key.application_id), key.id)) == key
        if isinstance(key, int) and not isinstance(key, bool):
            return (int(Application.PLEX), key) in self._by_key
        return False

    def __iter__(self) -> Iterator[PropertyDescriptor]:
        return iter(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)


@lru_cache
def default_catalog() -> PropertyCatalog:
    """Return the process-wide catalog built from ``PLEX_PROPERTIES``."""

    return PropertyCatalog(PLEX_PROPERTIES)
