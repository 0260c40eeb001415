import asyncio

import pytest

from halcache import PageableResource, Resource, Sort

from fakes import users_page


@pytest.fixture
def users(hal):
    return asyncio.run(PageableResource.load(hal, "/users"))


class TestPageState:

    def test_reads_paging_fields(self, users):
        assert users.page == 1
        assert users.limit == 10
        assert users.pages == 2
        assert users.total == 16
        assert len(users.items) == 10

    def test_first_page_flags(self, users):
        assert users.is_first
        assert not users.is_last
        assert users.has_next
        assert not users.has_previous

    def test_defaults_before_data(self, hal):
        users = PageableResource(hal, "/users")
        assert users.page == 1
        assert users.limit == 10
        assert users.sort == []
        assert users.pages is None

    def test_sort_is_decoded(self, hal, http):
        payload = users_page(1)
        payload["_links"]["self"]["href"] = "/users?page=1&limit=10&sort=name,-age"
        http.data["/users?sorted"] = payload

        users = asyncio.run(PageableResource.load(hal, "/users?sorted"))

        assert users.sort == [Sort(field="name"), Sort(field="age", direction=False)]


class TestNavigation:

    def test_navigate_next(self, users, http):
        asyncio.run(users.navigate_next())

        assert http.urls()[-1] == "/users?page=2"
        assert users.page == 2
        assert users.is_last
        assert users.has_previous
        assert not users.has_next
        assert [item.get("_links")["self"]["href"] for item in users.items][0] == "/users/11"
        assert len(users.items) == 6

    def test_navigate_previous_and_first(self, users, http):
        asyncio.run(users.navigate_last())
        asyncio.run(users.navigate_previous())
        assert users.page == 1

        asyncio.run(users.navigate_first())
        assert http.urls()[-3:] == ["/users?page=2", "/users?page=1", "/users?page=1"]

    def test_navigation_moves_alias(self, users, hal):
        asyncio.run(users.navigate_next())
        assert hal.get_origin("/users") == "/users?page=2"

    def test_items_as_handles(self, users):
        users.set_item_constructor(Resource)
        asyncio.run(users.navigate_next())
        assert [item.alias for item in users.items] == [f"/users/{i}" for i in range(11, 17)]


class TestCommit:

    def test_page_setter_goes_through_change_set(self, users):
        users.page = 2
        users.limit = 5
        users.sort = [Sort(field="name", direction=False)]

        assert users.page == 1
        assert users.resolve_url() == "/users?page=2&limit=5&sort=-name"

    def test_commit_requests_merged_options(self, users, http):
        http.data["/users?page=2&limit=10"] = users_page(2)
        users.page = 2

        asyncio.run(users.commit())

        assert http.urls()[-1] == "/users?page=2&limit=10"
        assert users.page == 2
        assert users.change_set == {}

    def test_stale_commit_is_discarded(self, users, hal, http):
        http.data["/users?page=2&limit=10"] = users_page(2)
        http.data["/users?page=1&limit=10"] = users_page(1)

        async def run():
            gate = http.gate("/users?page=2&limit=10")
            users.page = 2
            slow = asyncio.ensure_future(users.commit())
            await asyncio.sleep(0)

            users.page = 1
            await users.commit()

            gate.set()
            return await slow

        stale = asyncio.run(run())

        assert stale["page"] == 2
        assert users.page == 1
        assert hal.get_origin("/users") == "/users?page=1"
        assert not users.is_loading
