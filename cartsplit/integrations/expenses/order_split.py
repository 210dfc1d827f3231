"""Proportional splitting of a grocery order across the people it was bought for."""

from decimal import Decimal

from cartsplit.models.orders import OrderData, Split, SplitSummary


def calculate_splits(order: OrderData) -> SplitSummary:
    """Split an order into per-person shares.

    Algorithm:
    1. Subtotal = every item's price, unassigned items included
    2. Each person's order share = their items total / subtotal
    3. Fees are distributed by order share
    4. People are returned in order of first appearance in the item list

    No rounding happens here; a subtotal of zero gives everyone a zero share
    instead of dividing by zero.

    Args:
        order: Items (with assignments) and fees.

    Returns:
        SplitSummary with one Split per assigned person and the order totals.
    """
    subtotal = sum((item.price for item in order.items), Decimal("0"))
    total_fees = order.fees.total

    splits = []
    for person in order.people:
        person_items = [item for item in order.items if item.assigned_to == person]
        items_total = sum((item.price for item in person_items), Decimal("0"))

        if subtotal > 0:
            order_share = items_total / subtotal
        else:
            order_share = Decimal("0")

        fee_share = total_fees * order_share

        splits.append(Split(
            person=person,
            items=person_items,
            items_total=items_total,
            order_share=order_share,
            fee_share=fee_share,
            total_owed=items_total + fee_share,
        ))

    return SplitSummary(
        splits=splits,
        subtotal=subtotal,
        total_fees=total_fees,
        total_with_fees=subtotal + total_fees,
        unassigned_items=[item for item in order.items if item.assigned_to is None],
    )
