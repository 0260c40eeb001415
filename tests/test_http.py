import asyncio

import httpx
import pytest

from halcache import Hal, HalSettings, HttpxService, MemoryKeyValueStore, Resource
from halcache.errors import TransportFailure
from halcache.services.http import HttpService

from fake_api import app, reset_pets


@pytest.fixture(autouse=True)
def pets():
    reset_pets()


def make_service():
    return HttpxService("http://testserver", transport=httpx.ASGITransport(app=app))


def run(method, *args):
    async def call():
        async with make_service() as service:
            return await getattr(service, method)(*args)

    return asyncio.run(call())


class TestHttpxService:

    def test_implements_protocol(self):
        assert isinstance(make_service(), HttpService)

    def test_get(self):
        pet = run("get", "/pets/fluffy")
        assert pet["name"] == "Fluffy"
        assert pet["_links"]["self"]["href"] == "/pets/fluffy"

    def test_options_become_query_params(self):
        pets = run("get", "/pets", {"species": "dog", "tag": ["a", "b"], "skip": {"x": 1}})
        assert [item["name"] for item in pets["_embedded"]["items"]] == ["Spike"]
        assert pets["tags"] == ["a", "b"]

    def test_post(self):
        created = run("post", "/pets", {"name": "Rex", "species": "dog"})
        assert created["_links"]["self"]["href"] == "/pets/rex"

    def test_patch(self):
        updated = run("patch", "/pets/fluffy", {"name": "Fluffier"})
        assert updated["name"] == "Fluffier"

    def test_delete_returns_none(self):
        assert run("delete", "/pets/fluffy") is None

    def test_error_status(self):
        with pytest.raises(TransportFailure) as info:
            run("get", "/pets/nobody")
        assert info.value.status_code == 404
        assert info.value.url == "/pets/nobody"

    def test_invalid_json(self):
        with pytest.raises(TransportFailure, match="Invalid JSON"):
            run("get", "/broken")

    def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        async def call():
            service = HttpxService("http://testserver", transport=httpx.MockTransport(refuse))
            async with service:
                return await service.get("/pets")

        with pytest.raises(TransportFailure) as info:
            asyncio.run(call())
        assert info.value.status_code is None


class TestEndToEnd:

    def test_resource_round_trip_over_http(self):
        async def scenario():
            async with make_service() as service:
                hal = Hal().init(
                    http=service,
                    storage=MemoryKeyValueStore(),
                    settings=HalSettings(_env_file=None),
                )
                fluffy = await Resource.load(hal, "/pets/fluffy")
                fluffy.set("name", "Fluffier")
                await fluffy.commit()

                collection = await Resource.load(hal, "/pets")
                hal.close()
                return fluffy, collection, hal

        fluffy, collection, hal = asyncio.run(scenario())
        assert fluffy.get("name") == "Fluffier"
        assert hal.get_item("/pets/fluffy")["name"] == "Fluffier"
        assert [item["name"] for item in collection.get_embedded("items")] == ["Fluffier", "Spike"]
