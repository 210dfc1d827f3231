"""Splitwise expense provider implementation."""

import logging
from typing import Optional

import httpx

from cartsplit.integrations.expenses.base import (
    ExpenseProvider,
    ExpenseResult,
    ProviderNotConfiguredError,
    SplitwiseAPIError,
)
from cartsplit.lib.config import SplitwiseConfig
from cartsplit.models.integrations import ExpensePayload, SplitwiseUser

logger = logging.getLogger(__name__)


class SplitwiseProvider(ExpenseProvider):
    """Talk to the Splitwise v3.0 REST API.

    Errors are raised, never retried: non-2xx responses and bodies carrying an
    errors object become SplitwiseAPIError, network errors are httpx's own.
    """

    def __init__(self, config: SplitwiseConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport  # Injected in tests
        self.headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    def is_initialized(self) -> bool:
        return self.config.is_configured

    async def _request(self, method: str, endpoint: str, json: Optional[dict] = None) -> dict:
        if not self.is_initialized():
            raise ProviderNotConfiguredError("Splitwise API not configured. Set SPLITWISE_API_KEY.")

        url = f"{self.config.base_url}{endpoint}"
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.request(
                method,
                url,
                json=json,
                headers=self.headers,
                timeout=self.config.timeout,
            )

        if response.status_code not in (200, 201):
            logger.error(f"Splitwise API error {response.status_code} on {endpoint}: {response.text}")
            raise SplitwiseAPIError(
                f"Splitwise API request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        data = response.json()
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            logger.error(f"Splitwise rejected {endpoint}: {errors}")
            raise SplitwiseAPIError(
                f"Splitwise rejected the request: {errors}",
                status_code=response.status_code,
                body=response.text,
            )
        return data

    async def get_current_user(self) -> SplitwiseUser:
        data = await self._request("GET", "/get_current_user")
        return SplitwiseUser(**data["user"])

    async def get_friends(self) -> list[SplitwiseUser]:
        data = await self._request("GET", "/get_friends")
        return [SplitwiseUser(**f) for f in data.get("friends", [])]

    async def get_groups(self) -> list[dict]:
        data = await self._request("GET", "/get_groups")
        return data.get("groups", [])

    async def create_expense(self, payload: ExpensePayload) -> ExpenseResult:
        """Create an expense in Splitwise.

        Maps to Splitwise's POST /create_expense endpoint.
        """
        data = await self._request("POST", "/create_expense", json=payload.to_request())

        # Splitwise answers with a list of created expenses
        expenses = data.get("expenses") or [data.get("expense") or {}]
        created = expenses[0] if expenses else {}

        return ExpenseResult(
            expense_id=str(created.get("id", "")),
            status="submitted",
            provider="splitwise",
            message="Expense submitted to Splitwise.",
            amount=payload.cost,
            data=created,
        )

    async def create_group(self, name: str, group_type: str = "apartment", simplify_by_default: bool = True) -> dict:
        """Create a Splitwise group owned by the operator.

        Maps to Splitwise's POST /create_group endpoint.
        """
        data = await self._request("POST", "/create_group", json={
            "name": name,
            "group_type": group_type,
            "simplify_by_default": simplify_by_default,
        })
        group = data.get("group") or {}
        logger.info(f"Created Splitwise group '{name}' ({group.get('id')})")
        return group

    async def add_user_to_group(
        self,
        group_id: int,
        user_id: Optional[int] = None,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> dict:
        """Add an existing user (by id) or an invitee (by email) to a group."""
        if user_id is None and not email:
            raise ValueError("add_user_to_group needs a user_id or an email")

        body: dict = {"group_id": group_id}
        if user_id is not None:
            body["user_id"] = user_id
        else:
            body["email"] = email
            if first_name:
                body["first_name"] = first_name
            if last_name:
                body["last_name"] = last_name

        return await self._request("POST", "/add_user_to_group", json=body)

    async def search_users(self, query: str) -> list[SplitwiseUser]:
        """Friends whose first name, last name or email contains the query."""
        needle = query.strip().lower()
        if not needle:
            return []

        matches = []
        for friend in await self.get_friends():
            fields = (friend.first_name, friend.last_name or "", friend.email or "")
            if any(needle in field.lower() for field in fields):
                matches.append(friend)
        return matches

    async def test_connection(self) -> dict:
        result = await super().test_connection()
        logger.info(f"Splitwise connection OK - connected as {result['user']['first_name']}")
        return result
