"""Data models for the Splitwise integration."""

from typing import Optional
from pydantic import BaseModel, Field


# ==================== Splitwise Accounts ====================

class SplitwiseUser(BaseModel):
    """A Splitwise account (the operator or one of their friends)."""

    id: int
    first_name: str = ""
    last_name: Optional[str] = None  # Splitwise allows accounts without a last name
    email: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


# ==================== Expense Payloads ====================

class ExpenseParticipant(BaseModel):
    """Who paid and who owes on a Splitwise expense.

    A user_id of None refers to the authenticated operator.
    """

    user_id: Optional[int] = None
    paid_share: str  # 2-decimal string, e.g. "6.00"
    owed_share: str


class ExpensePayload(BaseModel):
    """Canonical create_expense request body."""

    cost: str
    description: str
    details: str = ""
    date: str  # YYYY-MM-DD
    currency_code: str = "USD"
    category_id: int = 18  # Food & Drink
    group_id: Optional[int] = None
    users: list[ExpenseParticipant] = Field(default_factory=list)
    unresolved_people: list[str] = Field(default_factory=list)  # Billed to the operator

    def to_request(self) -> dict:
        """Body sent to Splitwise (drops local bookkeeping fields)."""
        return self.model_dump(exclude={"unresolved_people"})
