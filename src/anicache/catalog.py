"""Catalog client -- one cached fetch function per remote operation.

:class:`CatalogClient` is what the CLI and embedding applications call. Each
method derives a cache key, picks the cache category for its data, and goes
through :func:`~anicache.dispatch.dispatch`::

    client = CatalogClient(provider, registry)
    client.anime_info("21")            # provider call, cached in "Info"
    client.anime_info("21")            # served from the cache

Seasonal lists (top airing, upcoming) are computed from the current date
using Anilist's season quarters.
"""

from __future__ import annotations

import datetime
import enum
from typing import Any, Callable, Optional

from anicache.cache.keys import make_key, normalize_params
from anicache.cache.registry import CacheRegistry
from anicache.dispatch import dispatch
from anicache.exceptions import InvalidUsageError
from anicache.providers.base import DataProvider, OperationId

# Cache categories. Each name is also the snapshot slot of its cache.
ADVANCED_SEARCH_CACHE = "Advanced Search"
DATA_CACHE = "Data"
INFO_CACHE = "Info"
EPISODES_CACHE = "Episodes"
EMBEDDED_SOURCES_CACHE = "Video Embedded Sources"
VIDEO_SOURCES_CACHE = "Video Sources"
RECENT_EPISODES_CACHE = "RecentEpisodes"
SKIP_TIMES_CACHE = "SkipTimes"


class ListType(str, enum.Enum):
    """Curated anime lists. The value doubles as the cache category."""

    TOP_RATED = "TopRated"
    TRENDING = "Trending"
    POPULAR = "Popular"
    TOP_AIRING = "TopAiring"
    UPCOMING = "Upcoming"


ALL_CATEGORIES = [
    ADVANCED_SEARCH_CACHE,
    DATA_CACHE,
    INFO_CACHE,
    EPISODES_CACHE,
    EMBEDDED_SOURCES_CACHE,
    VIDEO_SOURCES_CACHE,
    RECENT_EPISODES_CACHE,
    SKIP_TIMES_CACHE,
    *(list_type.value for list_type in ListType),
]


_SEASONS = ("WINTER", "SPRING", "SUMMER", "FALL")


def get_current_season(today: Optional[datetime.date] = None) -> str:
    """Return the Anilist season for *today*.

    January-March is WINTER, April-June SPRING, July-September SUMMER,
    October-December FALL.
    """
    today = today or datetime.date.today()
    return _SEASONS[(today.month - 1) // 3]


def get_next_season(today: Optional[datetime.date] = None) -> tuple[str, int]:
    """Return ``(season, year)`` of the season following *today*'s."""
    today = today or datetime.date.today()
    index = (today.month - 1) // 3
    if index == len(_SEASONS) - 1:
        return _SEASONS[0], today.year + 1
    return _SEASONS[index + 1], today.year


class CatalogClient:
    """Cached access to the anime catalog.

    Args:
        provider: Data provider answering :class:`OperationId` requests.
        registry: Source of the per-category cache instances.
        default_provider: Streaming provider name used in keys and
            parameters when callers do not pass one.
        today: Returns the current date; used for seasonal lists.
    """

    def __init__(
        self,
        provider: DataProvider,
        registry: CacheRegistry,
        default_provider: str = "gogoanime",
        today: Callable[[], datetime.date] = datetime.date.today,
    ) -> None:
        self._provider = provider
        self._registry = registry
        self._default_provider = default_provider
        self._today = today

    @property
    def registry(self) -> CacheRegistry:
        return self._registry

    # ------------------------------------------------------------------ #
    # Search and metadata
    # ------------------------------------------------------------------ #

    def advanced_search(
        self,
        query: str = "",
        page: int = 1,
        per_page: int = 20,
        *,
        type: str = "ANIME",
        season: Optional[str] = None,
        format: Optional[str] = None,
        sort: Optional[list[str]] = None,
        genres: Optional[list[str]] = None,
        id: Optional[str] = None,
        year: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Any:
        """Search the catalog. Keys are built from the normalised parameters."""
        params: dict[str, Any] = {
            "query": query or None,
            "page": page,
            "perPage": per_page,
            "type": type,
            "season": season,
            "format": format,
            "id": id,
            "year": year,
            "status": status,
            "sort": list(sort) if sort else None,
            "genres": list(genres) if genres else None,
        }
        params = {k: v for k, v in params.items() if v is not None}
        key = make_key("advancedSearch", *normalize_params(params))
        return self._fetch(OperationId.ADVANCED_SEARCH, params, ADVANCED_SEARCH_CACHE, key)

    def anime_data(self, anime_id: str, provider: Optional[str] = None) -> Any:
        provider = provider or self._default_provider
        key = make_key("animeData", anime_id, provider)
        return self._fetch(OperationId.ANIME_DATA, {"id": anime_id}, DATA_CACHE, key)

    def anime_info(self, anime_id: str, provider: Optional[str] = None) -> Any:
        provider = provider or self._default_provider
        key = make_key("animeInfo", anime_id, provider)
        return self._fetch(
            OperationId.ANIME_INFO, {"id": anime_id, "provider": provider}, INFO_CACHE, key
        )

    # ------------------------------------------------------------------ #
    # Lists
    # ------------------------------------------------------------------ #

    def fetch_list(self, list_type: ListType | str, page: int = 1, per_page: int = 16) -> Any:
        """Fetch one of the curated :class:`ListType` lists.

        Raises:
            InvalidUsageError: If *list_type* is not a known list.
        """
        try:
            kind = ListType(list_type)
        except ValueError:
            raise InvalidUsageError(f"{list_type}: unknown anime list") from None

        key = make_key(f"{kind.value}Anime", str(page), str(per_page))
        paging = {"page": page, "perPage": per_page}

        if kind is ListType.TRENDING:
            return self._fetch(OperationId.TRENDING, paging, kind.value, key)

        params: dict[str, Any] = {"type": "ANIME", **paging}
        today = self._today()
        if kind is ListType.TOP_RATED:
            params["sort"] = ["SCORE_DESC"]
        elif kind is ListType.POPULAR:
            params["sort"] = ["POPULARITY_DESC"]
        elif kind is ListType.TOP_AIRING:
            params.update(
                sort=["POPULARITY_DESC"],
                status="RELEASING",
                season=get_current_season(today),
                year=today.year,
            )
        else:
            season, year = get_next_season(today)
            params.update(
                sort=["POPULARITY_DESC"],
                status="NOT_YET_RELEASED",
                season=season,
                year=year,
            )
        return self._fetch(OperationId.ADVANCED_SEARCH, params, kind.value, key)

    def top_anime(self, page: int = 1, per_page: int = 16) -> Any:
        return self.fetch_list(ListType.TOP_RATED, page, per_page)

    def trending_anime(self, page: int = 1, per_page: int = 16) -> Any:
        return self.fetch_list(ListType.TRENDING, page, per_page)

    def popular_anime(self, page: int = 1, per_page: int = 16) -> Any:
        return self.fetch_list(ListType.POPULAR, page, per_page)

    def top_airing_anime(self, page: int = 1, per_page: int = 16) -> Any:
        return self.fetch_list(ListType.TOP_AIRING, page, per_page)

    def upcoming_seasons(self, page: int = 1, per_page: int = 16) -> Any:
        return self.fetch_list(ListType.UPCOMING, page, per_page)

    # ------------------------------------------------------------------ #
    # Episodes and streaming
    # ------------------------------------------------------------------ #

    def anime_episodes(
        self, anime_id: str, provider: Optional[str] = None, dub: bool = False
    ) -> Any:
        provider = provider or self._default_provider
        key = make_key("animeEpisodes", anime_id, provider, "dub" if dub else "sub")
        return self._fetch(
            OperationId.EPISODES,
            {"id": anime_id, "dub": dub, "provider": provider},
            EPISODES_CACHE,
            key,
        )

    def embedded_episodes(self, episode_id: str) -> Any:
        """Fetch the embedded streaming servers of an episode."""
        key = make_key("animeEmbeddedServers", episode_id)
        return self._fetch(OperationId.SERVERS, {"id": episode_id}, EMBEDDED_SOURCES_CACHE, key)

    def streaming_links(self, episode_id: str) -> Any:
        key = make_key("animeStreamingLinks", episode_id)
        return self._fetch(
            OperationId.WATCH, {"episodeId": episode_id}, VIDEO_SOURCES_CACHE, key
        )

    def skip_times(
        self, mal_id: str, episode_number: str, episode_length: str = "0"
    ) -> Any:
        """Fetch opening/ending skip intervals for one episode."""
        key = make_key("skipTimes", str(mal_id), str(episode_number), str(episode_length or ""))
        params = {
            "malId": str(mal_id),
            "episodeNumber": str(episode_number),
            "episodeLength": str(episode_length or "0"),
        }
        return self._fetch(OperationId.SKIP_TIMES, params, SKIP_TIMES_CACHE, key)

    def recent_episodes(
        self, page: int = 1, per_page: int = 18, provider: Optional[str] = None
    ) -> Any:
        provider = provider or self._default_provider
        key = make_key("recentEpisodes", str(page), str(per_page), provider)
        return self._fetch(
            OperationId.RECENT_EPISODES,
            {"page": page, "perPage": per_page, "provider": provider},
            RECENT_EPISODES_CACHE,
            key,
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _fetch(self, operation: OperationId, params: dict[str, Any], category: str, key: str) -> Any:
        return dispatch(
            operation.value,
            params,
            self._registry.get(category),
            key,
            provider=self._provider,
        )
