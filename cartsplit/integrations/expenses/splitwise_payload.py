"""Build Splitwise create_expense payloads from computed splits."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from cartsplit.integrations.expenses.base import InvalidExpenseError
from cartsplit.models.integrations import ExpenseParticipant, ExpensePayload, SplitwiseUser
from cartsplit.models.orders import OrderData, Split, quantize_money

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION_PREFIX = "Instacart Order"
DEFAULT_CURRENCY = "USD"
FOOD_AND_DRINK_CATEGORY_ID = 18

ZERO = "0.00"


def format_amount(amount: Decimal) -> str:
    """Format an amount as a 2-decimal string, e.g. Decimal("5.999") -> "6.00"."""
    return f"{quantize_money(amount):.2f}"


def build_expense_payload(
    split: Split,
    user: Optional[SplitwiseUser] = None,
    operator_id: Optional[int] = None,
    group_id: Optional[int] = None,
    expense_date: Optional[date] = None,
    description_prefix: str = DEFAULT_DESCRIPTION_PREFIX,
    lookup_done: bool = True,
) -> ExpensePayload:
    """Turn one person's split into a Splitwise expense.

    The operator paid for the whole order, so the operator pays the full cost
    and the matched user owes it. When the person could not be matched (or is
    the operator), the operator is billed for their own share and the details
    say so.

    Args:
        split: The person's computed share.
        user: The person's Splitwise account, or None if unresolved.
        operator_id: The operator's Splitwise id; None means "the authenticated user".
        group_id: Optional Splitwise group to post into.
        expense_date: Defaults to today.
        description_prefix: Leading label for the description.
        lookup_done: False when no account lookup ran (previews); a missing
            user is then not reported as unmatched.

    Returns:
        ExpensePayload ready for ExpenseProvider.create_expense.

    Raises:
        InvalidExpenseError: the split is malformed or the cost is not positive.
    """
    problems = _validate_split(split)
    if problems:
        raise InvalidExpenseError(f"Invalid split for '{split.person}': {'; '.join(problems)}", problems)

    cost = format_amount(split.total_owed)
    item_names = ", ".join(split.item_names)
    details = f"Items: {item_names}"
    unresolved = []

    if user is not None and user.id != operator_id:
        users = [
            ExpenseParticipant(user_id=operator_id, paid_share=cost, owed_share=ZERO),
            ExpenseParticipant(user_id=user.id, paid_share=ZERO, owed_share=cost),
        ]
    else:
        users = [ExpenseParticipant(user_id=operator_id, paid_share=cost, owed_share=cost)]
        if user is None and lookup_done:
            unresolved.append(split.person)
            details += f"\nNote: could not match '{split.person}' to a Splitwise friend; billed to your account."
            logger.warning(f"Billing operator for unmatched person '{split.person}' ({cost})")

    payload = ExpensePayload(
        cost=cost,
        description=_description(description_prefix, item_names),
        details=details,
        date=(expense_date or date.today()).isoformat(),
        currency_code=DEFAULT_CURRENCY,
        category_id=FOOD_AND_DRINK_CATEGORY_ID,
        group_id=group_id,
        users=users,
        unresolved_people=unresolved,
    )
    _raise_if_invalid(payload)
    return payload


def build_group_expense_payload(
    splits: list[Split],
    order: OrderData,
    resolved: dict[str, Optional[SplitwiseUser]],
    operator_id: Optional[int] = None,
    group_id: Optional[int] = None,
    expense_date: Optional[date] = None,
    description_prefix: str = DEFAULT_DESCRIPTION_PREFIX,
    lookup_done: bool = True,
) -> ExpensePayload:
    """Build a single expense covering every split.

    The operator pays the sum of the rounded shares. Each matched person owes
    their share; shares of unmatched people (and the operator's own) are owed
    by the operator. Entries for the same account are merged.

    Args:
        splits: All computed splits for the order.
        order: The order, used for the item count and fee breakdown.
        resolved: Person name -> Splitwise account (None if unresolved).
        operator_id: The operator's Splitwise id; None means "the authenticated user".
        group_id: Optional Splitwise group to post into.
        expense_date: Defaults to today.
        description_prefix: Leading label for the description.
        lookup_done: False when no account lookup ran (previews).
    """
    if not splits:
        raise InvalidExpenseError("At least one person must be assigned to the expense")

    for split in splits:
        problems = _validate_split(split, require_positive=False)
        if problems:
            raise InvalidExpenseError(f"Invalid split for '{split.person}': {'; '.join(problems)}", problems)

    owed: dict[Optional[int], Decimal] = {operator_id: Decimal("0")}
    unresolved = []
    for split in splits:
        user = resolved.get(split.person)
        key = operator_id if user is None else user.id
        if user is None and lookup_done:
            unresolved.append(split.person)
        owed[key] = owed.get(key, Decimal("0")) + quantize_money(split.total_owed)

    total = sum(owed.values(), Decimal("0"))
    cost = format_amount(total)

    users = []
    for user_id, amount in owed.items():
        paid = cost if user_id == operator_id else ZERO
        if user_id != operator_id and amount == 0:
            continue
        users.append(ExpenseParticipant(user_id=user_id, paid_share=paid, owed_share=format_amount(amount)))

    fees = order.fees
    details = (
        f"Delivery: ${fees.delivery:.2f}, Service: ${fees.service:.2f}, "
        f"Tip: ${fees.tip:.2f}, Tax: ${fees.tax:.2f}"
    )
    if unresolved:
        details += f"\nNote: billed to your account for unmatched: {', '.join(unresolved)}."

    payload = ExpensePayload(
        cost=cost,
        description=_description(description_prefix, f"{len(order.items)} items"),
        details=details,
        date=(expense_date or date.today()).isoformat(),
        currency_code=DEFAULT_CURRENCY,
        category_id=FOOD_AND_DRINK_CATEGORY_ID,
        group_id=group_id,
        users=users,
        unresolved_people=unresolved,
    )
    _raise_if_invalid(payload)
    return payload


def validate_expense_payload(payload: ExpensePayload) -> list[str]:
    """Return every problem with a payload (empty list when valid)."""
    errors = []

    cost = _parse_amount(payload.cost)
    if cost is None or cost <= 0:
        errors.append("Invalid cost amount")

    if not payload.description.strip():
        errors.append("Expense description is required")

    if not payload.users:
        errors.append("At least one person must be assigned to the expense")
        return errors

    paid_shares = [_parse_amount(u.paid_share) for u in payload.users]
    owed_shares = [_parse_amount(u.owed_share) for u in payload.users]
    if None in paid_shares or None in owed_shares:
        errors.append("Invalid share amount")
    elif cost is not None:
        paid = sum(paid_shares, Decimal("0"))
        owed = sum(owed_shares, Decimal("0"))
        if paid != cost or owed != cost:
            errors.append(f"Shares do not add up to cost {payload.cost} (paid {paid}, owed {owed})")

    return errors


def _parse_amount(value: str) -> Optional[Decimal]:
    """Parse a share or cost string; None when it is not a finite number."""
    try:
        amount = Decimal(value)
    except ArithmeticError:
        return None
    if not amount.is_finite():
        return None
    return amount


def _description(prefix: str, label: str) -> str:
    prefix = prefix.strip()
    if prefix and label:
        return f"{prefix} - {label}"
    return prefix or label


def _validate_split(split: Split, require_positive: bool = True) -> list[str]:
    problems = []
    if not split.person or not split.person.strip():
        problems.append("missing person")
    if not split.items:
        problems.append("no items assigned")
    if split.total_owed < 0:
        problems.append(f"negative total owed ({split.total_owed})")
    elif require_positive and quantize_money(split.total_owed) <= 0:
        problems.append("Invalid cost amount")
    return problems


def _raise_if_invalid(payload: ExpensePayload) -> None:
    errors = validate_expense_payload(payload)
    if errors:
        raise InvalidExpenseError(f"Invalid expense '{payload.description}': {'; '.join(errors)}", errors)
