import pytest

from maigewan.services.account import list_licenses, list_notifications, search_users, user_search_filter
from maigewan.services.pocketbase import PocketBaseError


def test_user_search_filter():
    assert user_search_filter("") is None
    assert user_search_filter("bob") == 'username ~ "bob" || email ~ "bob" || name ~ "bob"'


def test_user_search_filter_escapes_quotes():
    assert user_search_filter('x" || role = "admin') == (
        'username ~ "x\\" || role = \\"admin" || '
        'email ~ "x\\" || role = \\"admin" || '
        'name ~ "x\\" || role = \\"admin"'
    )


@pytest.mark.asyncio
async def test_search_users_page(fake_pb):
    fake_pb.records["users"] = [{"id": f"u{i}"} for i in range(25)]

    result = await search_users(fake_pb.client(), page=2, search="")

    assert [u["id"] for u in result["users"]] == [f"u{i}" for i in range(20, 25)]
    assert result["totalItems"] == 25
    assert result["totalPages"] == 2
    assert result["currentPage"] == 2
    assert result["search"] == ""
    params = fake_pb.last_request("GET", "/users/records").url.params
    assert params["perPage"] == "20"
    assert params["sort"] == "-created"
    assert "filter" not in params


@pytest.mark.asyncio
async def test_search_users_computes_missing_total_pages():
    class StubRecords:
        async def get_list(self, **kwargs):
            return {"items": [], "totalItems": 41}

    class StubClient:
        def collection(self, name):
            return StubRecords()

    result = await search_users(StubClient(), page=1, search="")

    assert result["totalPages"] == 3


@pytest.mark.asyncio
async def test_search_users_propagates_errors(fake_pb):
    fake_pb.failing_lists.add("users")

    with pytest.raises(PocketBaseError):
        await search_users(fake_pb.client(), page=1)


@pytest.mark.asyncio
async def test_list_licenses(fake_pb):
    fake_pb.records["maigewan_licenses"] = [{"id": "lic1", "userRef": "u1"}]

    licenses = await list_licenses(fake_pb.client(), "u1")

    assert licenses == [{"id": "lic1", "userRef": "u1"}]
    params = fake_pb.last_request("GET", "/maigewan_licenses/records").url.params
    assert params["filter"] == 'userRef = "u1"'


@pytest.mark.asyncio
async def test_list_licenses_failure_is_empty(fake_pb):
    fake_pb.failing_lists.add("maigewan_licenses")

    assert await list_licenses(fake_pb.client(), "u1") == []


@pytest.mark.asyncio
async def test_notifications_for_anonymous_skip_store(fake_pb):
    assert await list_notifications(fake_pb.client(), None) == []
    assert fake_pb.requests == []


@pytest.mark.asyncio
async def test_notifications_filter(fake_pb):
    await list_notifications(fake_pb.client(), "u1")

    params = fake_pb.last_request("GET", "/notifications/records").url.params
    assert params["filter"] == 'user ~ "u1"'
    assert params["sort"] == "-created"
