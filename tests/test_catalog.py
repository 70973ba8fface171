import httpx
import pytest

from datetime import date
from folio.catalog import CatalogClient, Config, Game, GameDetails
from folio.error import (
    DecodeError,
    NotFoundError,
    ServiceUnavailableError,
    TransportError,
    UnauthorizedError,
)
from folio.pagination import Failure, Success


config = Config(base_url="https://catalog.test/api/", api_key="secret", page_size=2)


def game_json(id, name, **kwargs):
    return {"id": id, "name": name, "background_image": f"https://img.test/{id}.jpg", **kwargs}


def client_for(handler):
    return CatalogClient(config, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_game_from_json():
    game = Game.from_json(game_json(3498, "Grand Theft Auto V", rating=4.47, released="2013-09-17"))
    assert game == Game(
        id=3498,
        name="Grand Theft Auto V",
        image_url="https://img.test/3498.jpg",
        rating=4.47,
        released=date(2013, 9, 17),
    )


def test_game_from_json_defaults():
    game = Game.from_json({"id": 7, "name": None, "background_image": None, "released": None})
    assert game == Game(id=7, name="", image_url=None, rating=0.0, released=None)


@pytest.mark.parametrize("value", [{"name": "Nameless"}, {"id": None, "name": "Nameless"}])
def test_game_from_json_missing_id(value):
    with pytest.raises(DecodeError):
        Game.from_json(value)
    with pytest.raises(DecodeError):
        GameDetails.from_json(value)


def test_game_details_from_json():
    details = GameDetails.from_json(
        {
            "id": 3328,
            "name": "The Witcher 3: Wild Hunt",
            "description": "<p>The third game</p>",
            "description_raw": "The third game",
            "released": "2015-05-18",
            "rating": 4.65,
            "playtime": 46,
            "background_image": "https://img.test/3328.jpg",
            "background_image_additional": "https://img.test/3328b.jpg",
            "genres": [{"id": 4, "name": "Action"}, {"id": 5, "name": "RPG"}],
        }
    )
    assert details == GameDetails(
        id=3328,
        name="The Witcher 3: Wild Hunt",
        description="<p>The third game</p>",
        released=date(2015, 5, 18),
        rating=4.65,
        playtime=46,
        image_url="https://img.test/3328.jpg",
        additional_image_url="https://img.test/3328b.jpg",
        genres=("Action", "RPG"),
    )


def test_game_details_from_json_defaults():
    details = GameDetails.from_json(
        {"id": 1, "description": None, "description_raw": "plain", "genres": None, "playtime": None}
    )
    assert details == GameDetails(id=1, name="", description="plain")
    assert GameDetails.from_json({"id": 1}).description == ""


def test_game_details_from_json_invalid():
    with pytest.raises(DecodeError):
        GameDetails.from_json({"id": 1, "playtime": "long"})
    with pytest.raises(DecodeError):
        GameDetails.from_json({"id": 1, "genres": ["Action"]})


def test_game_from_json_invalid():
    with pytest.raises(DecodeError):
        Game.from_json({"id": "abc", "name": "x"})
    with pytest.raises(DecodeError):
        Game.from_json({"id": 1, "released": "not a date"})
    with pytest.raises(DecodeError):
        Game.from_json(["not", "an", "object"])


def test_config_url():
    assert config.url == "https://catalog.test/api/games"


def test_config_from_environ():
    environ = {
        "FOLIO_BASE_URL": "https://catalog.test",
        "FOLIO_API_KEY": "k",
        "FOLIO_PAGE_SIZE": "40",
        "FOLIO_TIMEOUT": "2.5",
    }
    loaded = Config.from_environ(environ)
    assert loaded == Config(base_url="https://catalog.test", api_key="k", page_size=40, timeout=2.5)


def test_config_from_environ_missing():
    with pytest.raises(ValueError):
        Config.from_environ({"FOLIO_BASE_URL": "https://catalog.test"})


@pytest.mark.asyncio
async def test_games_request():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(
            200,
            json={"count": 2, "next": None, "previous": None, "results": [game_json(1, "Game 1")]},
        )

    async with client_for(handler) as client:
        games = await client.games(3)
    assert [game.name for game in games] == ["Game 1"]
    params = requests[0].url.params
    assert requests[0].url.path == "/api/games"
    assert params["key"] == "secret"
    assert params["page"] == "3"
    assert params["page_size"] == "2"


@pytest.mark.asyncio
async def test_page_past_end_is_empty():
    def handler(request):
        return httpx.Response(404, json={"detail": "Invalid page."})

    async with client_for(handler) as client:
        assert await client.games(7) == []


@pytest.mark.asyncio
async def test_error_status():
    def handler(request):
        status = 401 if request.url.params["page"] == "1" else 503
        return httpx.Response(status)

    async with client_for(handler) as client:
        with pytest.raises(UnauthorizedError):
            await client.games(1)
        with pytest.raises(ServiceUnavailableError):
            await client.games(2)


@pytest.mark.asyncio
async def test_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    async with client_for(handler) as client:
        with pytest.raises(TransportError):
            await client.games(1)


@pytest.mark.asyncio
async def test_malformed_body():
    def handler(request):
        return httpx.Response(200, content=b"<html>")

    async with client_for(handler) as client:
        with pytest.raises(DecodeError):
            await client.games(1)


@pytest.mark.asyncio
async def test_fetch_port():
    def handler(request):
        if request.url.params["page"] == "1":
            return httpx.Response(200, json={"results": [game_json(1, "Game 1")]})
        return httpx.Response(500)

    async with client_for(handler) as client:
        assert await client.fetch(1) == Success([Game(1, "Game 1", "https://img.test/1.jpg")])
        outcome = await client.fetch(2)
    assert isinstance(outcome, Failure)
    assert outcome.cause.status == 500


@pytest.mark.asyncio
async def test_borrowed_client_not_closed():
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    async with CatalogClient(config, http):
        pass
    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
async def test_first_page_not_found():
    def handler(request):
        return httpx.Response(404)

    async with client_for(handler) as client:
        with pytest.raises(NotFoundError):
            await client.games(1)


@pytest.mark.asyncio
async def test_game_request():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": 22, "name": "Game 22", "description_raw": "text"})

    async with client_for(handler) as client:
        details = await client.game(22)
    assert details == GameDetails(id=22, name="Game 22", description="text")
    assert requests[0].url.path == "/api/games/22"
    assert dict(requests[0].url.params) == {"key": "secret"}


@pytest.mark.asyncio
async def test_game_errors():
    def handler(request):
        match request.url.path:
            case "/api/games/1":
                return httpx.Response(404, json={"detail": "Not found."})
            case "/api/games/2":
                return httpx.Response(503)
            case "/api/games/3":
                return httpx.Response(200, content=b"<html>")
            case _:
                raise httpx.ReadTimeout("timed out")

    async with client_for(handler) as client:
        with pytest.raises(NotFoundError):
            await client.game(1)
        with pytest.raises(ServiceUnavailableError):
            await client.game(2)
        with pytest.raises(DecodeError):
            await client.game(3)
        with pytest.raises(TransportError):
            await client.game(4)
