import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from game_tracker.errors import TransportError
from game_tracker.remote_catalog import HttpRemoteCatalog


def make_app(seen):
    async def game(request):
        seen.append(("game", dict(request.query)))
        url = request.query["url"]
        if url.endswith("broken/"):
            return web.Response(status=500)
        if url.endswith("garbage/"):
            return web.Response(body=b'{"name": 42}', content_type="application/json")
        return web.json_response({
            "id": 123,
            "name": "Some Game",
            "author": "Dev",
            "version": "0.4",
            "url": url,
            "tags": ["rpg"],
            "unknown_field": "ignored",
        })

    async def search(request):
        seen.append(("search", dict(request.query)))
        return web.json_response([
            {"id": 1, "name": request.query["name"]},
            {"id": 2, "name": request.query["name"], "is_mod": True},
        ])

    app = web.Application()
    app.router.add_get("/api/game", game)
    app.router.add_get("/api/search", search)
    return app


def run_against_server(scenario):
    seen = []

    async def main():
        async with test_utils.TestServer(make_app(seen)) as server:
            async with HttpRemoteCatalog(str(server.make_url("/api")), timeout=5) as catalog:
                return await scenario(catalog)

    return asyncio.run(main()), seen


class TestHttpRemoteCatalog:

    def test_fetch_by_url(self):
        url = "https://forum.example.com/threads/some-game.123/"

        async def scenario(catalog):
            return await catalog.fetch_by_url(url)

        info, seen = run_against_server(scenario)
        assert info.id == 123
        assert info.version == "0.4"
        assert info.tags == ["rpg"]
        assert seen == [("game", {"url": url})]

    def test_search_by_name_keeps_catalog_order(self):
        async def scenario(catalog):
            return await catalog.search_by_name("Game X", True)

        results, seen = run_against_server(scenario)
        assert [r.id for r in results] == [1, 2]
        assert seen == [("search", {"name": "Game X", "mod": "1"})]

    def test_http_error(self):
        async def scenario(catalog):
            with pytest.raises(TransportError, match="HTTP 500"):
                await catalog.fetch_by_url("https://forum.example.com/threads/broken/")

        run_against_server(scenario)

    def test_invalid_payload(self):
        async def scenario(catalog):
            with pytest.raises(TransportError, match="Invalid game payload"):
                await catalog.fetch_by_url("https://forum.example.com/threads/garbage/")

        run_against_server(scenario)

    def test_unreachable_catalog(self):
        async def scenario():
            # Port 9 (discard) is never served in the test environment
            async with HttpRemoteCatalog("http://127.0.0.1:9/api", timeout=2) as catalog:
                await catalog.search_by_name("Game", False)

        with pytest.raises(TransportError):
            asyncio.run(scenario())
