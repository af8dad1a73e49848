"""Pydantic models describing provider snapshots and evaluation results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ItemType = Literal["movie", "show", "season", "episode"]


class DataType(IntEnum):
    """Plex library type codes."""

    MOVIE = 1
    SHOW = 2
    SEASON = 3
    EPISODE = 4

    @classmethod
    def for_item_type(cls, item_type: str) -> "DataType":
        return cls[item_type.upper()]


class Unknown(Enum):
    """Marker for an evaluation that could not be determined."""

    TOKEN = "unknown"

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False


UNKNOWN = Unknown.TOKEN

PropertyValue = Union[datetime, float, int, bool, list[str], None, Unknown]


def is_unknown(value: object) -> bool:
    return value is UNKNOWN


def _stringify(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _Snapshot(BaseModel):
    """Read-only view of a provider payload."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class Tag(_Snapshot):
    tag: str


class MediaPart(_Snapshot):
    """Technical facets of one media version."""

    video_resolution: str | None = Field(default=None, alias="videoResolution")
    bitrate: int | None = None
    video_codec: str | None = Field(default=None, alias="videoCodec")

    @field_validator("video_resolution", mode="before")
    @classmethod
    def _coerce_resolution(cls, value: Any) -> Any:
        return _stringify(value)


class MediaItem(_Snapshot):
    """A movie, show, season or episode as returned by the provider."""

    rating_key: str = Field(alias="ratingKey")
    type: ItemType
    title: str | None = None
    index: int | None = None
    parent_rating_key: str | None = Field(default=None, alias="parentRatingKey")
    grandparent_rating_key: str | None = Field(
        default=None, alias="grandparentRatingKey"
    )
    library_section_id: int | None = Field(default=None, alias="librarySectionID")
    leaf_count: int | None = Field(default=None, alias="leafCount")
    added_at: int | None = Field(default=None, alias="addedAt")
    originally_available_at: str | None = Field(
        default=None, alias="originallyAvailableAt"
    )
    rating: float | None = None
    audience_rating: float | None = Field(default=None, alias="audienceRating")
    user_rating: float | None = Field(default=None, alias="userRating")
    roles: list[Tag] | None = Field(default=None, alias="Role")
    collections: list[Tag] | None = Field(default=None, alias="Collection")
    labels: list[Tag] | None = Field(default=None, alias="Label")
    genres: list[Tag] | None = Field(default=None, alias="Genre")
    media: list[MediaPart] = Field(default_factory=list, alias="Media")

    @field_validator(
        "rating_key",
        "parent_rating_key",
        "grandparent_rating_key",
        "originally_available_at",
        mode="before",
    )
    @classmethod
    def _coerce_keys(cls, value: Any) -> Any:
        return _stringify(value)

    @property
    def is_leaf(self) -> bool:
        return self.type in ("movie", "episode")


class WatchEvent(_Snapshot):
    """One recorded view of an item by an account."""

    account_id: int = Field(alias="accountID")
    viewed_at: int = Field(alias="viewedAt")
    season_index: int | None = Field(default=None, alias="parentIndex")
    episode_index: int | None = Field(default=None, alias="index")
    rating_key: str | None = Field(default=None, alias="ratingKey")

    @field_validator("rating_key", mode="before")
    @classmethod
    def _coerce_key(cls, value: Any) -> Any:
        return _stringify(value)


class Playlist(_Snapshot):
    id: str = Field(alias="ratingKey")
    title: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _stringify(value)


class LocalUser(_Snapshot):
    id: int
    name: str


class RemoteIdentity(_Snapshot):
    id: int
    username: str | None = None


class ReconciledUser(_Snapshot):
    id: int
    username: str


class RuleContext(_Snapshot):
    """The slice of a rule definition that property evaluation depends on."""

    name: str
    manual_collection: bool = Field(default=False, alias="manualCollection")
    manual_collection_name: str | None = Field(
        default=None, alias="manualCollectionName"
    )

    @property
    def managed_collection_name(self) -> str:
        """Return the collection maintained by the rule itself."""

        if self.manual_collection and self.manual_collection_name:
            return self.manual_collection_name
        return self.name
