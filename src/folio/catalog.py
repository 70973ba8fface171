"""
Module to fetch pages of games from a remote catalog API.

The catalog is expected to expose a paginated collection endpoint that accepts "key", "page"
and "page_size" query parameters, and responds with a JSON object of the form:

  {"count": 1234, "next": "...", "previous": null, "results": [{...}, ...]}

Each result is decoded into a `Game`. The details of a single game are requested from the
collection URL followed by the game id, and decoded into `GameDetails`. A `CatalogClient`
provides a fetch port suitable for a `folio.pagination.Paginator`.
"""

import httpx
import isodate
import logging
import os

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from folio.error import DecodeError, NotFoundError, TransportError, for_status, wrap_exception
from folio.pagination import fetch_port
from typing import Any


_logger = logging.getLogger(__name__)


def _id(value: Mapping[str, Any]) -> int:
    if value.get("id") is None:
        raise DecodeError("expecting id in catalog object")
    return int(value["id"])


def _date(value: Any) -> date | None:
    return isodate.parse_date(value) if value else None


@dataclass(frozen=True)
class Game:
    """
    A game listed in the catalog.

    Attributes:
    • id: catalog identifier of the game
    • name: display name
    • image_url: URL of the background image, if any
    • rating: average user rating
    • released: release date, if known
    """

    id: int
    name: str
    image_url: str | None = None
    rating: float = 0.0
    released: date | None = None

    @classmethod
    def from_json(cls, value: Mapping[str, Any]) -> "Game":
        """
        Decode a game from a catalog result object. Missing or null values other than "id" are
        replaced with defaults; a missing id or a value of the wrong type raises DecodeError.
        """
        if not isinstance(value, Mapping):
            raise DecodeError(f"expecting object; received {type(value).__name__}")
        with wrap_exception(catch=(TypeError, ValueError), throw=DecodeError):
            return cls(
                id=_id(value),
                name=str(value.get("name") or ""),
                image_url=value.get("background_image") or None,
                rating=float(value.get("rating") or 0.0),
                released=_date(value.get("released")),
            )


@dataclass(frozen=True)
class GameDetails:
    """
    Full description of a single game.

    Attributes:
    • id: catalog identifier of the game
    • name: display name
    • description: HTML description, or the plain-text one if absent
    • released: release date, if known
    • rating: average user rating
    • playtime: average playtime in hours
    • image_url: URL of the background image, if any
    • additional_image_url: URL of a second background image, if any
    • genres: names of the genres of the game
    """

    id: int
    name: str
    description: str = ""
    released: date | None = None
    rating: float = 0.0
    playtime: int = 0
    image_url: str | None = None
    additional_image_url: str | None = None
    genres: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, value: Mapping[str, Any]) -> "GameDetails":
        """Decode game details from a catalog object, with the same tolerance as `Game`."""
        if not isinstance(value, Mapping):
            raise DecodeError(f"expecting object; received {type(value).__name__}")
        with wrap_exception(catch=(TypeError, ValueError, AttributeError), throw=DecodeError):
            return cls(
                id=_id(value),
                name=str(value.get("name") or ""),
                description=str(value.get("description") or value.get("description_raw") or ""),
                released=_date(value.get("released")),
                rating=float(value.get("rating") or 0.0),
                playtime=int(value.get("playtime") or 0),
                image_url=value.get("background_image") or None,
                additional_image_url=value.get("background_image_additional") or None,
                genres=tuple(str(g["name"]) for g in value.get("genres") or () if g.get("name")),
            )


@dataclass(frozen=True)
class Config:
    """
    Catalog client configuration.

    Parameters and attributes:
    • base_url: base URL of the catalog API
    • api_key: API key passed in the "key" query parameter
    • endpoint: path of the games collection, relative to base URL  ["games"]
    • page_size: number of games to request per page  [20]
    • timeout: request timeout in seconds  [10.0]
    """

    base_url: str
    api_key: str
    endpoint: str = "games"
    page_size: int = 20
    timeout: float = 10.0

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] = os.environ) -> "Config":
        """
        Load configuration from environment variables: FOLIO_BASE_URL and FOLIO_API_KEY are
        required; FOLIO_ENDPOINT, FOLIO_PAGE_SIZE and FOLIO_TIMEOUT are optional.
        """
        missing = [k for k in ("FOLIO_BASE_URL", "FOLIO_API_KEY") if not environ.get(k)]
        if missing:
            raise ValueError(f"missing environment variables: {', '.join(missing)}")
        kwargs = {}
        if endpoint := environ.get("FOLIO_ENDPOINT"):
            kwargs["endpoint"] = endpoint
        if page_size := environ.get("FOLIO_PAGE_SIZE"):
            kwargs["page_size"] = int(page_size)
        if timeout := environ.get("FOLIO_TIMEOUT"):
            kwargs["timeout"] = float(timeout)
        return cls(base_url=environ["FOLIO_BASE_URL"], api_key=environ["FOLIO_API_KEY"], **kwargs)

    @property
    def url(self) -> str:
        """URL of the games collection."""
        return f"{self.base_url.rstrip('/')}/{self.endpoint.lstrip('/')}"


class CatalogClient:
    """
    Client of a remote games catalog.

    Parameters:
    • config: catalog client configuration
    • client: HTTP client to send requests with  [new client, owned and closed by this one]
    """

    def __init__(self, config: Config, client: httpx.AsyncClient | None = None):
        self.config = config
        self._owned = client is None
        self.client = client or httpx.AsyncClient(timeout=config.timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client, if owned by this client."""
        if self._owned:
            await self.client.aclose()

    async def games(self, page: int) -> list[Game]:
        """
        Return the games in a page. A page beyond the end of the collection is returned as an
        empty list.

        Raises an error from `folio.error` matching the HTTP status of an unsuccessful
        response, TransportError if the request fails, or DecodeError for a malformed body.
        """
        params = {"page": page, "page_size": self.config.page_size}
        try:
            body = await self._get(self.config.url, params, f"page {page}")
        except NotFoundError:
            if page == 1:
                raise
            _logger.debug("page %s is beyond the end of the collection", page)
            return []
        results = body.get("results") if isinstance(body, Mapping) else None
        if results is None:
            return []
        if not isinstance(results, list):
            raise DecodeError("expecting results to be an array")
        return [Game.from_json(result) for result in results]

    async def game(self, id: int) -> GameDetails:
        """
        Return the details of a game.

        Raises NotFoundError if the catalog has no such game, another error from `folio.error`
        matching the HTTP status of an unsuccessful response, TransportError if the request
        fails, or DecodeError for a malformed body.
        """
        body = await self._get(f"{self.config.url}/{id}", {}, f"game {id}")
        return GameDetails.from_json(body)

    async def _get(self, url: str, params: dict[str, Any], what: str) -> Any:
        _logger.debug("requesting %s %s", url, params)
        try:
            response = await self.client.get(url, params={"key": self.config.api_key, **params})
        except httpx.HTTPError as e:
            raise TransportError(f"request for {what} failed: {e}") from e
        if response.is_error:
            error = for_status(response.status_code)
            raise error(f"catalog responded {response.status_code} for {what}")
        with wrap_exception(catch=ValueError, throw=DecodeError):
            return response.json()

    @fetch_port
    async def fetch(self, page: int) -> list[Game]:
        """Fetch port that returns the games in a page."""
        return await self.games(page)
