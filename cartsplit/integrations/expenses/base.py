"""Abstract expense provider interface."""

from abc import ABC, abstractmethod
from typing import Optional

from cartsplit.models.integrations import ExpensePayload, SplitwiseUser


class InvalidExpenseError(ValueError):
    """A split or payload cannot be turned into a valid expense."""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class ProviderNotConfiguredError(ValueError):
    """The provider has no API credentials."""


class SplitwiseAPIError(Exception):
    """Splitwise answered with an error status or an errors object."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ExpenseResult:
    """Result from creating an expense."""

    def __init__(
        self,
        expense_id: str,
        status: str,
        provider: str,
        message: str = "",
        person: Optional[str] = None,
        amount: Optional[str] = None,
        data: Optional[dict] = None,
    ):
        self.expense_id = expense_id
        self.status = status
        self.provider = provider
        self.message = message
        self.person = person
        self.amount = amount
        self.data = data or {}

    def to_dict(self) -> dict:
        return {
            "expense_id": self.expense_id,
            "status": self.status,
            "provider": self.provider,
            "message": self.message,
            "person": self.person,
            "amount": self.amount,
        }


class ExpenseProvider(ABC):
    """Abstract interface for the expense-sharing service."""

    @abstractmethod
    async def get_current_user(self) -> SplitwiseUser:
        """Return the authenticated operator's account."""
        ...

    @abstractmethod
    async def get_friends(self) -> list[SplitwiseUser]:
        """Return the operator's friends, the candidates for name matching."""
        ...

    @abstractmethod
    async def create_expense(self, payload: ExpensePayload) -> ExpenseResult:
        """Create an expense entry in the external system.

        Args:
            payload: The expense data to submit.

        Returns:
            ExpenseResult with ID and status.

        Raises:
            SplitwiseAPIError: the service rejected the request.
        """
        ...

    async def test_connection(self) -> dict:
        """Check the credentials by fetching the current user."""
        user = await self.get_current_user()
        return {"success": True, "user": user.model_dump()}
