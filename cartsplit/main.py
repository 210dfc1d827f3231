"""
cartsplit API - split a grocery order and post the shares to Splitwise.
Replaces the browser-facing proxy: the client sends the order, the server
talks to Splitwise with the configured credentials.
"""

import logging
from datetime import date
from typing import Literal, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from cartsplit import __version__
from cartsplit.integrations.expenses.base import (
    ExpenseProvider,
    InvalidExpenseError,
    ProviderNotConfiguredError,
    SplitwiseAPIError,
)
from cartsplit.integrations.expenses.order_split import calculate_splits
from cartsplit.integrations.expenses.splitwise import SplitwiseProvider
from cartsplit.integrations.expenses.splitwise_payload import DEFAULT_DESCRIPTION_PREFIX, format_amount
from cartsplit.integrations.expenses.summary import fee_breakdown
from cartsplit.lib.config import SplitwiseConfig
from cartsplit.models.orders import OrderData
from cartsplit.tools.expenses import preview_expenses, send_order_to_splitwise

logger = logging.getLogger(__name__)


class ExpenseRequest(BaseModel):
    order: OrderData
    mode: Literal["per_person", "group"] = "per_person"
    group_id: Optional[int] = None
    skip_invalid: bool = False
    expense_date: Optional[date] = None
    description_prefix: str = DEFAULT_DESCRIPTION_PREFIX


def get_config(request: Request) -> SplitwiseConfig:
    """The config the app was built with."""
    return request.app.state.config


def get_provider(request: Request, config: SplitwiseConfig = Depends(get_config)) -> ExpenseProvider:
    return SplitwiseProvider(config, transport=request.app.state.transport)


def create_app(
    config: Optional[SplitwiseConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        config: Splitwise settings; read from the environment when omitted.
        transport: Optional httpx transport for the Splitwise provider.
    """
    config = config or SplitwiseConfig.from_env()

    web_app = FastAPI(title="cartsplit", version=__version__)
    web_app.state.config = config
    web_app.state.transport = transport

    web_app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @web_app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "service": "cartsplit"}

    @web_app.post("/splits")
    async def split_order(order: OrderData):
        """Compute each person's share of an order."""
        summary = calculate_splits(order)
        result = summary.model_dump(mode="json")
        result["fee_breakdown"] = [
            {"name": row["name"], "amount": format_amount(row["amount"])}
            for row in fee_breakdown(order.fees)
        ]
        return result

    @web_app.post("/expenses/preview")
    async def preview(request: ExpenseRequest):
        """Show the expense payloads without contacting Splitwise."""
        try:
            payloads = preview_expenses(
                request.order,
                mode=request.mode,
                group_id=request.group_id,
                expense_date=request.expense_date,
                description_prefix=request.description_prefix,
            )
        except InvalidExpenseError as e:
            raise HTTPException(status_code=422, detail=e.errors)
        return {"expenses": [p.to_request() for p in payloads]}

    @web_app.post("/expenses")
    async def create_expenses(request: ExpenseRequest, provider: ExpenseProvider = Depends(get_provider)):
        """Split the order and create the expenses in Splitwise."""
        try:
            return await send_order_to_splitwise(
                request.order,
                provider,
                mode=request.mode,
                group_id=request.group_id,
                skip_invalid=request.skip_invalid,
                expense_date=request.expense_date,
                description_prefix=request.description_prefix,
            )
        except InvalidExpenseError as e:
            raise HTTPException(status_code=422, detail=e.errors)
        except ProviderNotConfiguredError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except SplitwiseAPIError as e:
            logger.error(f"Sending expenses failed: {e}")
            raise HTTPException(status_code=502, detail=str(e))

    @web_app.get("/splitwise/test")
    async def test_connection(provider: ExpenseProvider = Depends(get_provider)):
        """Verify the Splitwise credentials."""
        try:
            return await provider.test_connection()
        except ProviderNotConfiguredError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except SplitwiseAPIError as e:
            raise HTTPException(status_code=502, detail=str(e))

    return web_app


app = create_app()
