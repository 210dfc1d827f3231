from .orders import Item, Fees, OrderData, Split, SplitSummary, quantize_money
from .integrations import SplitwiseUser, ExpenseParticipant, ExpensePayload

__all__ = [
    "Item",
    "Fees",
    "OrderData",
    "Split",
    "SplitSummary",
    "quantize_money",
    "SplitwiseUser",
    "ExpenseParticipant",
    "ExpensePayload",
]
