"""Human-readable order summaries for the CLI and API."""

from decimal import Decimal

from cartsplit.models.orders import Fees, SplitSummary, quantize_money


def format_currency(amount: Decimal) -> str:
    """Format as US dollars, e.g. Decimal("1234.5") -> "$1,234.50"."""
    amount = quantize_money(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def fee_breakdown(fees: Fees) -> list[dict]:
    """List the non-zero fees with their display labels."""
    rows = [
        {"name": "Delivery Fee", "amount": fees.delivery},
        {"name": "Service Fee", "amount": fees.service},
        {"name": "Tip", "amount": fees.tip},
        {"name": "Tax", "amount": fees.tax},
    ]
    return [row for row in rows if row["amount"] > 0]


def render_summary_text(summary: SplitSummary, fees: Fees) -> str:
    """Render the final split as plain text."""
    lines = ["Final Split:", ""]

    for split in summary.splits:
        share = f"{split.order_share_percent:.1f}%"
        lines.extend([
            f"{split.person}: {format_currency(split.total_owed)}",
            f"  Items: {format_currency(split.items_total)} ({share} of order)",
            f"  Fees & Tax: {format_currency(split.fee_share)} ({share} of fees)",
            f"  Items: {', '.join(split.item_names)}",
        ])

    if summary.unassigned_items:
        names = ", ".join(i.name for i in summary.unassigned_items)
        lines.extend(["", f"Unassigned: {names}"])

    item_count = len(summary.unassigned_items) + sum(len(s.items) for s in summary.splits)
    lines.extend([
        "",
        f"Subtotal ({item_count} items): {format_currency(summary.subtotal)}",
    ])
    for row in fee_breakdown(fees):
        lines.append(f"{row['name']}: {format_currency(row['amount'])}")
    lines.extend([
        f"Total Fees: {format_currency(summary.total_fees)}",
        f"TOTAL: {format_currency(summary.total_with_fees)}",
    ])

    return "\n".join(lines)
