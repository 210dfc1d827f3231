"""Post a split order to Splitwise."""

import logging
from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from cartsplit.integrations.expenses.base import ExpenseProvider, InvalidExpenseError
from cartsplit.integrations.expenses.order_split import calculate_splits
from cartsplit.integrations.expenses.splitwise_payload import (
    DEFAULT_DESCRIPTION_PREFIX,
    build_expense_payload,
    build_group_expense_payload,
    format_amount,
)
from cartsplit.integrations.expenses.user_match import UserResolver
from cartsplit.models.integrations import ExpensePayload
from cartsplit.models.orders import OrderData

logger = logging.getLogger(__name__)


def preview_expenses(
    order: OrderData,
    mode: Literal["per_person", "group"] = "per_person",
    group_id: Optional[int] = None,
    expense_date: Optional[date] = None,
    description_prefix: str = DEFAULT_DESCRIPTION_PREFIX,
) -> list[ExpensePayload]:
    """Build the payloads an order would produce, without any account lookups.

    Every participant refers to the operator (user_id None).
    """
    summary = calculate_splits(order)

    if mode == "group":
        payload = build_group_expense_payload(
            summary.splits,
            order,
            resolved={},
            group_id=group_id,
            expense_date=expense_date,
            description_prefix=description_prefix,
            lookup_done=False,
        )
        return [payload]

    payloads = []
    for split in summary.splits:
        payloads.append(build_expense_payload(
            split,
            group_id=group_id,
            expense_date=expense_date,
            description_prefix=description_prefix,
            lookup_done=False,
        ))
    return payloads


async def send_order_to_splitwise(
    order: OrderData,
    provider: ExpenseProvider,
    mode: Literal["per_person", "group"] = "per_person",
    group_id: Optional[int] = None,
    skip_invalid: bool = False,
    expense_date: Optional[date] = None,
    description_prefix: str = DEFAULT_DESCRIPTION_PREFIX,
) -> dict:
    """Split an order and create the matching Splitwise expenses.

    Friends are fetched once and each person is resolved once per call.
    All payloads are built first; an invalid split aborts before anything is
    sent. Expenses are then created one at a time in split order.

    Args:
        order: Items (with assignments) and fees.
        provider: Transport to the expense-sharing service.
        mode: "per_person" creates one expense per person, "group" one aggregate expense.
        group_id: Optional Splitwise group to post into.
        skip_invalid: Skip splits that cannot form a valid expense instead of aborting.
        expense_date: Defaults to today.
        description_prefix: Leading label for expense descriptions.

    Returns:
        Dict with the created expenses, skipped and unresolved people.

    Raises:
        InvalidExpenseError: a split is invalid and skip_invalid is False.
        SplitwiseAPIError: Splitwise rejected a request.
    """
    summary = calculate_splits(order)
    if not summary.splits:
        return {
            "expenses": [],
            "skipped": [],
            "unresolved": [],
            "provider": "splitwise",
            "total": "0.00",
            "message": "No assigned items; nothing to send.",
        }

    operator = await provider.get_current_user()
    logger.info(f"Sending {len(summary.splits)} splits to Splitwise as {operator.full_name}")

    resolver = UserResolver(await provider.get_friends())
    resolved = {split.person: resolver.resolve(split.person) for split in summary.splits}

    results = []
    skipped = []

    if mode == "group":
        payload = build_group_expense_payload(
            summary.splits,
            order,
            resolved,
            operator_id=operator.id,
            group_id=group_id,
            expense_date=expense_date,
            description_prefix=description_prefix,
        )
        result = await provider.create_expense(payload)
        results.append(result.to_dict())
    else:
        # Build every payload before sending so an abort leaves nothing posted
        payloads = []
        for split in summary.splits:
            try:
                payloads.append((split.person, build_expense_payload(
                    split,
                    user=resolved[split.person],
                    operator_id=operator.id,
                    group_id=group_id,
                    expense_date=expense_date,
                    description_prefix=description_prefix,
                )))
            except InvalidExpenseError as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Skipping {split.person}: {e}")
                skipped.append({"person": split.person, "errors": e.errors})

        for person, payload in payloads:
            result = await provider.create_expense(payload)
            result.person = person
            results.append(result.to_dict())

    total = sum((split.total_owed for split in summary.splits), Decimal("0"))
    count = len(results)

    return {
        "expenses": results,
        "skipped": skipped,
        "unresolved": resolver.unresolved,
        "provider": "splitwise",
        "total": format_amount(total),
        "message": f"{count} {'expense' if count == 1 else 'expenses'} submitted to Splitwise.",
    }
