"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest


# Ensure the package is importable when running tests without an editable
# install. ``ruleprops`` sits at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from ruleprops.errors import ProviderError  # noqa: E402
from ruleprops.models import (  # noqa: E402
    DataType,
    LocalUser,
    MediaItem,
    Playlist,
    RemoteIdentity,
    WatchEvent,
)
from ruleprops.properties import default_catalog  # noqa: E402
from ruleprops.services.evaluator import PropertyEvaluator  # noqa: E402


class FakePlexProvider:
    """In-memory ``MetadataProvider`` with per-call failure injection."""

    def __init__(self) -> None:
        self.items: dict[str, MediaItem] = {}
        self.children: dict[str, list[str]] = {}
        self.history: dict[str, list[WatchEvent]] = {}
        self.playlists: dict[str, list[Playlist]] = {}
        self.users: list[LocalUser] = []
        self.remote_identities: list[RemoteIdentity] = []
        self.watched: dict[tuple[int | None, int], list[str]] = {}
        self.failures: dict[str, set[str]] = {}
        self.calls: list[tuple[str, str]] = []

    def add(self, **fields: Any) -> MediaItem:
        item = MediaItem.model_validate(fields)
        self.items[item.rating_key] = item
        if item.parent_rating_key:
            self.children.setdefault(item.parent_rating_key, []).append(item.rating_key)
        return item

    def watch(
        self,
        rating_key: str,
        account_id: int,
        viewed_at: int,
        *,
        season: int | None = None,
        episode: int | None = None,
    ) -> None:
        self.history.setdefault(rating_key, []).append(
            WatchEvent(
                account_id=account_id,
                viewed_at=viewed_at,
                season_index=season,
                episode_index=episode,
            )
        )

    def add_playlist(self, rating_key: str, playlist_id: str, title: str) -> None:
        self.playlists.setdefault(rating_key, []).append(
            Playlist(id=playlist_id, title=title)
        )

    def add_user(self, user_id: int, name: str, username: str | None = None) -> None:
        self.users.append(LocalUser(id=user_id, name=name))
        if username is not None:
            self.remote_identities.append(RemoteIdentity(id=user_id, username=username))

    def fail(self, method: str, key: str = "*") -> None:
        self.failures.setdefault(method, set()).add(key)

    def _record(self, method: str, key: str = "") -> None:
        self.calls.append((method, key))
        failing = self.failures.get(method, set())
        if "*" in failing or key in failing:
            raise ProviderError(f"{method} failed for {key or 'request'}")

    def call_count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def get_metadata(self, rating_key: str) -> MediaItem:
        self._record("get_metadata", rating_key)
        try:
            return self.items[rating_key]
        except KeyError:
            raise ProviderError(f"No metadata found for {rating_key}") from None

    async def get_children_metadata(self, rating_key: str) -> list[MediaItem]:
        self._record("get_children_metadata", rating_key)
        return [self.items[key] for key in self.children.get(rating_key, [])]

    async def get_watch_history(self, rating_key: str) -> list[WatchEvent]:
        self._record("get_watch_history", rating_key)
        return list(self.history.get(rating_key, []))

    async def get_playlists(self, rating_key: str) -> list[Playlist]:
        self._record("get_playlists", rating_key)
        return list(self.playlists.get(rating_key, []))

    async def get_users(self) -> list[LocalUser]:
        self._record("get_users")
        return list(self.users)

    async def get_user_data_from_plex_tv(self) -> list[RemoteIdentity]:
        self._record("get_user_data_from_plex_tv")
        return list(self.remote_identities)

    async def get_watched(
        self, library_section_id: int | None, data_type: DataType
    ) -> list[MediaItem]:
        self._record("get_watched", f"{library_section_id}:{int(data_type)}")
        keys = self.watched.get((library_section_id, int(data_type)), [])
        return [self.items[key] for key in keys]


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def provider() -> FakePlexProvider:
    return FakePlexProvider()


@pytest.fixture
def evaluator(provider: FakePlexProvider) -> PropertyEvaluator:
    return PropertyEvaluator(provider, concurrency=4)


@pytest.fixture
def prop_id() -> Callable[[str], int]:
    """Return a lookup from property name to catalog id."""

    ids = {descriptor.name: descriptor.id for descriptor in default_catalog()}
    return ids.__getitem__


@pytest.fixture
def show_tree(provider: FakePlexProvider) -> dict[str, MediaItem]:
    """A show with two seasons: S1 has two episodes, S2 has one."""

    show = provider.add(
        ratingKey="100",
        type="show",
        title="Example Show",
        leafCount=3,
        librarySectionID=2,
        Genre=[{"tag": "Drama"}, {"tag": "Mystery"}],
        Label=[{"tag": "keep"}],
        Collection=[{"tag": "Favourites"}],
    )
    season_one = provider.add(
        ratingKey="110",
        type="season",
        index=1,
        parentRatingKey="100",
        Collection=[{"tag": "Season Picks"}],
    )
    season_two = provider.add(
        ratingKey="120", type="season", index=2, parentRatingKey="100"
    )
    episodes = {
        "111": provider.add(
            ratingKey="111",
            type="episode",
            index=1,
            parentRatingKey="110",
            grandparentRatingKey="100",
            addedAt=1_600_000_000,
        ),
        "112": provider.add(
            ratingKey="112",
            type="episode",
            index=2,
            parentRatingKey="110",
            grandparentRatingKey="100",
            addedAt=1_600_100_000,
        ),
        "121": provider.add(
            ratingKey="121",
            type="episode",
            index=1,
            parentRatingKey="120",
            grandparentRatingKey="100",
            addedAt=1_700_000_000,
            Collection=[{"tag": "Favourites"}, {"tag": "My Rule"}],
        ),
    }
    return {"show": show, "season_one": season_one, "season_two": season_two, **episodes}
