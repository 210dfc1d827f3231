import json

import httpx
import pytest

from cartsplit.integrations.expenses.base import ProviderNotConfiguredError, SplitwiseAPIError
from cartsplit.integrations.expenses.splitwise import SplitwiseProvider
from cartsplit.lib.config import SPLITWISE_API_BASE, SplitwiseConfig
from cartsplit.models.integrations import ExpenseParticipant, ExpensePayload


def _provider(handler, **config):
    config.setdefault("api_key", "secret-token")
    return SplitwiseProvider(SplitwiseConfig(**config), transport=httpx.MockTransport(handler))


def _payload():
    return ExpensePayload(
        cost="6.00",
        description="Instacart Order - Milk",
        details="Items: Milk",
        date="2024-05-01",
        users=[
            ExpenseParticipant(user_id=1, paid_share="6.00", owed_share="0.00"),
            ExpenseParticipant(user_id=10, paid_share="0.00", owed_share="6.00"),
        ],
        unresolved_people=[],
    )


@pytest.mark.asyncio
async def test_get_current_user_sends_bearer_token():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"user": {"id": 1, "first_name": "Olivia", "last_name": "Operator"}})

    user = await _provider(handler).get_current_user()

    assert user.id == 1
    assert user.full_name == "Olivia Operator"
    assert seen["url"] == f"{SPLITWISE_API_BASE}/get_current_user"
    assert seen["auth"] == "Bearer secret-token"


@pytest.mark.asyncio
async def test_get_friends_ignores_extra_fields():
    def handler(request):
        return httpx.Response(200, json={"friends": [
            {"id": 10, "first_name": "John", "last_name": "Smith", "email": "j@example.com", "balance": []},
            {"id": 12, "first_name": "Bob", "last_name": None, "email": "b@example.com"},
        ]})

    friends = await _provider(handler).get_friends()

    assert [f.id for f in friends] == [10, 12]
    assert friends[1].full_name == "Bob"


@pytest.mark.asyncio
async def test_create_expense_posts_canonical_body():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"expenses": [{"id": 555, "cost": "6.00"}], "errors": {}})

    result = await _provider(handler).create_expense(_payload())

    assert seen["method"] == "POST"
    assert seen["path"].endswith("/create_expense")
    assert seen["body"]["cost"] == "6.00"
    assert seen["body"]["users"][1] == {"user_id": 10, "paid_share": "0.00", "owed_share": "6.00"}
    assert "unresolved_people" not in seen["body"]
    assert result.expense_id == "555"
    assert result.status == "submitted"
    assert result.data == {"id": 555, "cost": "6.00"}


@pytest.mark.asyncio
async def test_error_status_raises():
    def handler(request):
        return httpx.Response(401, text='{"error": "Invalid API request: you are not logged in"}')

    with pytest.raises(SplitwiseAPIError) as exc:
        await _provider(handler).get_current_user()

    assert exc.value.status_code == 401
    assert "not logged in" in exc.value.body


@pytest.mark.asyncio
async def test_errors_object_raises():
    def handler(request):
        return httpx.Response(200, json={"expenses": [], "errors": {"base": ["Cost must be positive"]}})

    with pytest.raises(SplitwiseAPIError):
        await _provider(handler).create_expense(_payload())


@pytest.mark.asyncio
async def test_network_errors_propagate_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(httpx.ConnectError):
        await _provider(handler).get_friends()

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_missing_api_key_raises_before_request():
    def handler(request):
        raise AssertionError("no request expected")

    provider = _provider(handler, api_key="")

    assert not provider.is_initialized()
    with pytest.raises(ProviderNotConfiguredError):
        await provider.get_current_user()


@pytest.mark.asyncio
async def test_base_url_can_point_at_proxy():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"groups": [{"id": 5, "name": "House"}]})

    groups = await _provider(handler, base_url="http://localhost:3001/api/splitwise").get_groups()

    assert groups == [{"id": 5, "name": "House"}]
    assert seen["url"] == "http://localhost:3001/api/splitwise/get_groups"


@pytest.mark.asyncio
async def test_connection_check():
    def handler(request):
        return httpx.Response(200, json={"user": {"id": 1, "first_name": "Olivia"}})

    result = await _provider(handler).test_connection()

    assert result["success"] is True
    assert result["user"]["first_name"] == "Olivia"


@pytest.mark.asyncio
async def test_create_group():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"group": {"id": 77, "name": "Groceries"}})

    group = await _provider(handler).create_group("Groceries")

    assert group == {"id": 77, "name": "Groceries"}
    assert seen["url"] == f"{SPLITWISE_API_BASE}/create_group"
    assert seen["body"] == {"name": "Groceries", "group_type": "apartment", "simplify_by_default": True}


@pytest.mark.asyncio
async def test_add_user_to_group_by_id_or_email():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True, "user": {"id": 10}, "errors": {}})

    provider = _provider(handler)
    await provider.add_user_to_group(77, user_id=10)
    result = await provider.add_user_to_group(77, email="bob@example.com", first_name="Bob")

    assert result["success"] is True
    assert bodies == [
        {"group_id": 77, "user_id": 10},
        {"group_id": 77, "email": "bob@example.com", "first_name": "Bob"},
    ]


@pytest.mark.asyncio
async def test_add_user_to_group_needs_someone():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ValueError):
        await _provider(handler).add_user_to_group(77)


@pytest.mark.asyncio
async def test_add_user_to_group_rejection_raises():
    def handler(request):
        return httpx.Response(200, json={"success": False, "errors": {"base": ["Not a member"]}})

    with pytest.raises(SplitwiseAPIError):
        await _provider(handler).add_user_to_group(77, user_id=10)


@pytest.mark.asyncio
async def test_search_users_filters_friends():
    def handler(request):
        assert request.url.path.endswith("/get_friends")
        return httpx.Response(200, json={"friends": [
            {"id": 10, "first_name": "John", "last_name": "Smith", "email": "john@example.com"},
            {"id": 11, "first_name": "Alice", "last_name": "Jones", "email": "alice@work.org"},
            {"id": 12, "first_name": "Bob", "last_name": None, "email": None},
        ]})

    provider = _provider(handler)

    assert [u.id for u in await provider.search_users("SMI")] == [10]
    assert [u.id for u in await provider.search_users("work.org")] == [11]
    assert [u.id for u in await provider.search_users("o")] == [10, 11, 12]
    assert await provider.search_users("  ") == []
