from .expenses import preview_expenses, send_order_to_splitwise

__all__ = ["preview_expenses", "send_order_to_splitwise"]
