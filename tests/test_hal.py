import asyncio
import json

import pytest

from halcache import Hal, HalSettings
from halcache.errors import HalNotInitialized, InvalidResource, LinkNotFound
from halcache.utils import hal as hal_utils

from fakes import FakeHttp, FakeStorage, resource


class TestFollow:

    def test_performs_get(self, hal, http):
        asyncio.run(hal.follow("/me"))
        assert http.urls() == ["/me"]

    def test_creates_aliases_for_self_link(self, hal):
        asyncio.run(hal.follow("/self", None, "alias"))
        assert hal.aliases == {"alias": "/me", "/me": "/me", "/self": "/me"}

    def test_stores_data_for_self_link(self, hal):
        asyncio.run(hal.follow("/me"))
        assert hal.get_item("/me") == resource("/me")

    def test_forwards_options(self, hal, http):
        asyncio.run(hal.follow("/me", {"expand": "all"}))
        assert http.calls[0][3] == {"expand": "all"}

    def test_rejects_non_resource(self, hal, http):
        http.data["/broken"] = {"name": "no links"}
        with pytest.raises(InvalidResource):
            asyncio.run(hal.follow("/broken"))
        assert hal.origins == {}

    def test_stale_response_is_not_stored(self, hal, http):
        http.data["/slow"] = resource("/thing", v="old")
        http.data["/fast"] = resource("/thing", v="new")

        async def run():
            gate = http.gate("/slow")
            slow = asyncio.ensure_future(hal.follow("/slow", key="thing"))
            await asyncio.sleep(0)
            await hal.follow("/fast", key="thing")
            gate.set()
            return await slow

        stale = asyncio.run(run())

        assert stale["v"] == "old"
        assert hal.get_item("/thing")["v"] == "new"
        assert hal.get_origin("/slow") is None


class TestLifecycle:

    def test_uninitialized_access_raises(self):
        with pytest.raises(HalNotInitialized):
            Hal().get_item("/me")
        with pytest.raises(HalNotInitialized):
            Hal().http

    def test_initialized(self, hal):
        assert hal.initialized
        assert not Hal().initialized

    def test_clear_drops_everything(self, hal, storage):
        asyncio.run(hal.follow("/me"))
        hal.clear()
        assert hal.origins == {}
        assert hal.aliases == {}
        assert storage.get_item("hal_origins") is None

    def test_state_survives_reinit_on_same_storage(self, settings):
        storage = FakeStorage()
        first = Hal().init(http=FakeHttp(), storage=storage, settings=settings)
        asyncio.run(first.follow("/self"))
        first.close()

        second = Hal().init(http=FakeHttp(), storage=storage, settings=settings)
        assert second.get_origin("/self") == "/me"
        assert second.get_item("/me") == resource("/me")

    def test_pending_dump_is_flushed_on_close(self, http, storage):
        settings = HalSettings(_env_file=None, AUTO_DUMP_DELAY=10)

        async def run():
            hal = Hal().init(http=http, storage=storage, settings=settings)
            await hal.follow("/me")
            assert storage.get_item("origins") is None
            hal.close()

        asyncio.run(run())
        assert json.loads(storage.get_item("origins")) == {"/me": resource("/me")}

    def test_reinit_keeps_changes_from_quiet_window(self, http, storage):
        settings = HalSettings(_env_file=None, AUTO_DUMP_DELAY=5.0)

        async def run():
            hal = Hal().init(http=http, storage=storage, settings=settings)
            hal.set_item("/me", resource("/me", name="recent"))
            hal.init(http=http, storage=storage, settings=settings)
            return hal

        hal = asyncio.run(run())
        assert hal.get_item("/me") == resource("/me", name="recent")
        assert json.loads(storage.get_item("origins")) == {"/me": resource("/me", name="recent")}

    def test_manual_dump_with_auto_dump_off(self, hal, storage):
        hal.auto_dump = False
        hal.set_item("/me", resource("/me"))
        assert storage.get_item("hal_origins") is None
        hal.dump()
        assert json.loads(storage.get_item("hal_origins")) == {"/me": resource("/me")}


class TestRemoveSiblings:

    def test_removes_origins_sharing_base_url(self, hal):
        for page in range(1, 6):
            url = f"/data?page={page}&limit=10"
            hal.set_item(url, resource(url))
        hal.set_item("/user", resource("/user"))
        for page in range(1, 6):
            url = f"/other?page={page}&limit=10"
            hal.set_item(url, resource(url))

        hal.remove_siblings("/data")

        assert len(hal.origins) == 6
        assert hal.get_item("/other?page=1&limit=10") == resource("/other?page=1&limit=10")
        assert hal.get_item("/user") == resource("/user")
        assert hal.get_item("/data?page=1&limit=10") is None


class TestHandleCache:

    def test_disabled_by_default(self, hal):
        hal.set_cache("/me", object())
        assert hal.get_cache("/me") is None

    def test_enabled(self, hal):
        handle = object()
        hal.enable_cache()
        hal.set_cache("/me", handle)
        assert hal.get_cache("/me") is handle

    def test_disable_clears(self, hal):
        hal.enable_cache()
        hal.set_cache("/me", object())
        hal.disable_cache()
        hal.enable_cache()
        assert hal.get_cache("/me") is None

    def test_setting_enables_cache(self, http, storage):
        settings = HalSettings(_env_file=None, ENABLE_CACHE=True)
        hal = Hal().init(http=http, storage=storage, settings=settings)
        assert hal.cache_enabled


class TestPayloadHelpers:

    def test_resolve_embedded_name(self):
        assert hal_utils.resolve_embedded_name("resource", "embedded") == "resource@embedded"

    def test_resolve_link_name(self):
        assert hal_utils.resolve_link_name("resource", "embedded") == "resource#embedded"

    def test_get_link(self):
        assert hal_utils.get_link(resource("url"), "self") == "url"

    def test_get_missing_link(self):
        with pytest.raises(LinkNotFound, match="Link 'other' not found."):
            hal_utils.get_link(resource("url"), "other")

    def test_get_embedded_default_without_embedded(self):
        assert hal_utils.get_embedded(resource("url"), "embedded", "default") == "default"

    def test_get_embedded(self):
        payload = resource("url", _embedded={"embedded": "value"})
        assert hal_utils.get_embedded(payload, "embedded") == "value"
        assert hal_utils.get_embedded(payload, "other", "default") == "default"

    def test_resolve_base_url(self):
        url = "https://some-url.tld/path/to/resource?a=1&b=2&c[]=3#hello"
        assert hal_utils.resolve_base_url(url) == "https://some-url.tld/path/to/resource"

    @pytest.mark.parametrize(
        "payload,expected",
        [
            (resource("url"), True),
            ({}, False),
            ({"_links": {}}, False),
            ({"_links": {"self": {"href": 1}}}, False),
            ("string", False),
            (None, False),
        ],
    )
    def test_implements_resource(self, payload, expected):
        assert hal_utils.implements_resource(payload) is expected
