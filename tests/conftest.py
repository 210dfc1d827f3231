import pytest
from fastapi.testclient import TestClient

from cartsplit.integrations.expenses.base import ExpenseProvider, ExpenseResult
from cartsplit.main import create_app, get_provider
from cartsplit.lib.config import SplitwiseConfig
from cartsplit.models.integrations import SplitwiseUser
from cartsplit.models.orders import OrderData


class FakeProvider(ExpenseProvider):
    """In-memory provider that records every call."""

    def __init__(self, operator: SplitwiseUser, friends: list[SplitwiseUser]):
        self.operator = operator
        self.friends = friends
        self.created = []
        self.calls = {"get_current_user": 0, "get_friends": 0, "create_expense": 0}

    async def get_current_user(self):
        self.calls["get_current_user"] += 1
        return self.operator

    async def get_friends(self):
        self.calls["get_friends"] += 1
        return list(self.friends)

    async def create_expense(self, payload):
        self.calls["create_expense"] += 1
        self.created.append(payload)
        return ExpenseResult(
            expense_id=str(1000 + len(self.created)),
            status="submitted",
            provider="splitwise",
            message="Expense submitted to Splitwise.",
            amount=payload.cost,
        )


@pytest.fixture
def milk_bread_order():
    return OrderData.model_validate({
        "items": [
            {"id": "1", "name": "Milk", "price": "4.00", "assigned_to": "A"},
            {"id": "2", "name": "Bread", "price": "2.00", "assigned_to": "B"},
        ],
        "fees": {"delivery": "3.00"},
    })


@pytest.fixture
def operator():
    return SplitwiseUser(id=1, first_name="Olivia", last_name="Operator", email="olivia@example.com")


@pytest.fixture
def friends():
    return [
        SplitwiseUser(id=10, first_name="John", last_name="Smith", email="john@example.com"),
        SplitwiseUser(id=11, first_name="Alice", last_name="Jones", email="alice@example.com"),
        SplitwiseUser(id=12, first_name="Bob", last_name=None, email="bob@example.com"),
    ]


@pytest.fixture
def fake_provider(operator, friends):
    return FakeProvider(operator, friends)


@pytest.fixture
def client(fake_provider):
    """TestClient with the Splitwise provider replaced by the fake."""
    app = create_app(SplitwiseConfig(api_key="test-key"))
    app.dependency_overrides[get_provider] = lambda: fake_provider
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_provider, None)
