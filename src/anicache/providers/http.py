"""HTTP data provider for a consumet-style Anilist meta API.

:class:`HttpProvider` wraps :class:`httpx.Client` and answers every
:class:`~anicache.providers.base.OperationId` with a
:class:`~anicache.providers.base.Success` or
:class:`~anicache.providers.base.Failure`:

- **Parameter validation** -- missing ids, unknown seasons, and unknown
  genres are reported as failures before any request is sent.
- **Error mapping** -- 4xx/5xx responses become ``HTTP <status>: <message>``
  failures. Network errors are raised as :class:`httpx.HTTPError` and
  normalised by the dispatch layer.
- **Skip times** -- the ``skiptimes`` operation queries a separate
  skip-times API rooted at ``skip_times_url``.

The provider enforces its own request timeout; the cache layer never
cancels a call.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional

import httpx

from anicache.exceptions import UnknownOperationError
from anicache.models import ProviderConfig
from anicache.output import get_output
from anicache.providers.base import Failure, OperationId, Success

SEASONS = ("WINTER", "SPRING", "SUMMER", "FALL")

GENRES = (
    "Action",
    "Adventure",
    "Cars",
    "Comedy",
    "Drama",
    "Fantasy",
    "Horror",
    "Mahou Shoujo",
    "Mecha",
    "Music",
    "Mystery",
    "Psychological",
    "Romance",
    "Sci-Fi",
    "Slice of Life",
    "Sports",
    "Supernatural",
    "Thriller",
)

SKIP_TYPES = ("ed", "mixed-ed", "mixed-op", "op", "recap")

_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 6.0; Nexus 5 Build/MRA58N) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/130.0.0.0 Mobile Safari/537.36"
)

ProviderResponse = Success | Failure


class HttpProvider:
    """Synchronous provider backed by :class:`httpx.Client`.

    Must be used as a context manager so that the underlying transport is
    opened and closed, unless an already-open *client* is injected.

    Args:
        settings: Base URLs, timeout, and default streaming provider.
        client: Optional pre-built client (tests pass one with an
            :class:`httpx.MockTransport`). It is used for both APIs, so
            requests are sent with absolute URLs.

    Example::

        with HttpProvider(config.provider) as provider:
            result = provider.invoke("animeinfo", {"id": "21"})
    """

    def __init__(
        self,
        settings: ProviderConfig,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._handlers: dict[str, Callable[[Mapping[str, Any]], ProviderResponse]] = {
            OperationId.ADVANCED_SEARCH.value: self._advanced_search,
            OperationId.ANIME_DATA.value: self._anime_data,
            OperationId.ANIME_INFO.value: self._anime_info,
            OperationId.TRENDING.value: self._trending,
            OperationId.EPISODES.value: self._episodes,
            OperationId.SERVERS.value: self._servers,
            OperationId.WATCH.value: self._watch,
            OperationId.RECENT_EPISODES.value: self._recent_episodes,
            OperationId.SKIP_TIMES.value: self._skip_times,
        }

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpProvider:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._settings.timeout,
                follow_redirects=True,
            )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # DataProvider interface
    # ------------------------------------------------------------------ #

    def invoke(self, operation: str, parameters: Mapping[str, Any]) -> ProviderResponse:
        """Perform *operation* with *parameters*.

        Raises:
            UnknownOperationError: If *operation* is not an :class:`OperationId`.
            httpx.HTTPError: On network-level failures.
        """
        name = operation.value if isinstance(operation, OperationId) else str(operation)
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownOperationError(name)
        return handler(parameters)

    # ------------------------------------------------------------------ #
    # Operation handlers
    # ------------------------------------------------------------------ #

    def _advanced_search(self, params: Mapping[str, Any]) -> ProviderResponse:
        season = params.get("season")
        if season and season not in SEASONS:
            return Failure(message=f"{season} is not a valid season")

        genres = _json_list(params.get("genres"))
        for genre in genres or []:
            if genre not in GENRES:
                return Failure(message=f"{genre} is not a valid genre")

        query: dict[str, Any] = {
            "query": params.get("query") or None,
            "page": params.get("page") or 1,
            "perPage": params.get("perPage") or 16,
            "type": params.get("type") or "ANIME",
        }
        for name in ("format", "id", "status", "year", "season"):
            query[name] = params.get(name)
        if genres:
            query["genres"] = json.dumps(genres)
        sort = _json_list(params.get("sort"))
        if sort:
            query["sort"] = json.dumps(sort)
        return self._get_meta("/advanced-search", query)

    def _anime_data(self, params: Mapping[str, Any]) -> ProviderResponse:
        if not params.get("id"):
            return Failure(message="Anime ID is required")
        return self._get_meta(f"/data/{params['id']}")

    def _anime_info(self, params: Mapping[str, Any]) -> ProviderResponse:
        if not params.get("id"):
            return Failure(message="Anime ID is required")
        return self._get_meta(
            f"/info/{params['id']}",
            {"provider": params.get("provider") or self._settings.default_provider},
        )

    def _trending(self, params: Mapping[str, Any]) -> ProviderResponse:
        return self._get_meta(
            "/trending",
            {"page": params.get("page") or 1, "perPage": params.get("perPage") or 16},
        )

    def _episodes(self, params: Mapping[str, Any]) -> ProviderResponse:
        if not params.get("id"):
            return Failure(message="Anime ID is required")
        query = {
            "provider": params.get("provider") or self._settings.default_provider,
            "dub": "true" if params.get("dub") else "false",
        }
        try:
            result = self._get_meta(f"/episodes/{params['id']}", query)
        except httpx.HTTPError as exc:
            get_output().debug(f"Episode lookup failed: {exc}")
            return Failure(message="Anime not found")
        if isinstance(result, Failure):
            return Failure(message="Anime not found")
        return result

    def _servers(self, params: Mapping[str, Any]) -> ProviderResponse:
        if not params.get("id"):
            return Failure(message="Anime ID is required")
        return self._get_meta(f"/servers/{params['id']}")

    def _watch(self, params: Mapping[str, Any]) -> ProviderResponse:
        if not params.get("episodeId"):
            return Failure(message="Episode ID is required")
        try:
            result = self._get_meta(f"/watch/{params['episodeId']}")
        except httpx.HTTPError as exc:
            get_output().debug(f"Streaming source lookup failed: {exc}")
            result = None
        if not isinstance(result, Success):
            return Failure(message="Something went wrong. Contact developer for help.")
        return result

    def _recent_episodes(self, params: Mapping[str, Any]) -> ProviderResponse:
        return self._get_meta(
            "/recent-episodes",
            {
                "provider": params.get("provider") or self._settings.default_provider,
                "page": params.get("page") or 1,
                "perPage": params.get("perPage") or 16,
            },
        )

    def _skip_times(self, params: Mapping[str, Any]) -> ProviderResponse:
        mal_id = params.get("malId")
        episode_number = params.get("episodeNumber")
        if not mal_id or not episode_number:
            return Failure(message="MAL ID and episode number are required")

        url = f"{self._settings.skip_times_url}v2/skip-times/{mal_id}/{episode_number}"
        query: list[tuple[str, str]] = [
            ("episodeLength", str(params.get("episodeLength") or "0"))
        ]
        query.extend(("types[]", skip_type) for skip_type in SKIP_TYPES)

        response = self._http().get(url, params=query, headers={"User-Agent": _USER_AGENT})
        body = _json_body(response)
        status = body.get("statusCode") if isinstance(body, dict) else None
        if response.status_code != 200 or (isinstance(status, int) and status >= 400):
            message = (body.get("message") if isinstance(body, dict) else None) or (
                "Unknown server error"
            )
            return Failure(message=f"Server error: {status or response.status_code} {message}")
        return Success(payload=body)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.Client:
        assert self._client is not None, "Provider not initialised -- use as context manager"
        return self._client

    def _get_meta(
        self, path: str, params: Optional[dict[str, Any]] = None
    ) -> ProviderResponse:
        """GET *path* on the meta API and wrap the JSON body."""
        url = f"{self._settings.base_url.rstrip('/')}{path}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        get_output().debug(f"GET {url}")
        response = self._http().get(url, params=query, headers={"Accept": "application/json"})
        if response.status_code >= 400:
            return Failure(message=_error_message(response))
        return Success(payload=_json_body(response))


def _json_list(value: Any) -> Optional[list[Any]]:
    """Accept a list or a JSON-encoded list; anything else yields ``None``."""
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return [value]
        return parsed if isinstance(parsed, list) else [parsed]
    return [value]


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _error_message(response: httpx.Response) -> str:
    """Build ``HTTP <status>: <message>`` from an error response."""
    detail = _json_body(response)
    if isinstance(detail, dict):
        msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
    else:
        msg = str(detail)[:200] if detail else ""
    prefix = f"HTTP {response.status_code}"
    return f"{prefix}: {msg}" if msg else prefix
