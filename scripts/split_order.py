#!/usr/bin/env python3
"""Split an order JSON file and optionally post the shares to Splitwise.

The order file holds {"items": [{"name", "price", "assigned_to"}, ...],
"fees": {"delivery", "service", "tip", "tax"}}.

Environment variables (only needed with --send or --check):
    SPLITWISE_API_KEY    - Splitwise bearer token
    SPLITWISE_BASE_URL   - Optional, e.g. a proxy in front of the API

Usage:
    python scripts/split_order.py order.json
    python scripts/split_order.py order.json --send --group-id 12345
    python scripts/split_order.py --check
"""

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from cartsplit.integrations.expenses.base import (
    InvalidExpenseError,
    ProviderNotConfiguredError,
    SplitwiseAPIError,
)
from cartsplit.integrations.expenses.order_split import calculate_splits
from cartsplit.integrations.expenses.splitwise import SplitwiseProvider
from cartsplit.integrations.expenses.summary import render_summary_text
from cartsplit.lib.config import SplitwiseConfig
from cartsplit.models.orders import OrderData
from cartsplit.tools.expenses import send_order_to_splitwise


def main():
    parser = argparse.ArgumentParser(description=__doc__.split("\n")[0])
    parser.add_argument("order_file", nargs="?", help="Path to the order JSON file")
    parser.add_argument("--send", action="store_true", help="Create the expenses in Splitwise")
    parser.add_argument("--check", action="store_true", help="Only test the Splitwise connection")
    parser.add_argument("--group", action="store_true", help="Create one group expense instead of one per person")
    parser.add_argument("--group-id", type=int, default=None, help="Splitwise group to post into")
    parser.add_argument("--skip-invalid", action="store_true", help="Skip people whose share cannot be posted")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.check or args.send:
        provider = SplitwiseProvider(SplitwiseConfig.from_env())

    try:
        if args.check:
            result = asyncio.run(provider.test_connection())
            user = result["user"]
            print(f"Connected as {user['first_name']} {user.get('last_name') or ''}".rstrip())
            return

        if not args.order_file:
            parser.error("order_file is required unless --check is given")

        with open(args.order_file) as f:
            order = OrderData.model_validate(json.load(f))

        summary = calculate_splits(order)
        print(render_summary_text(summary, order.fees))

        if args.send:
            print("\nSending expenses to Splitwise...")
            result = asyncio.run(send_order_to_splitwise(
                order,
                provider,
                mode="group" if args.group else "per_person",
                group_id=args.group_id,
                skip_invalid=args.skip_invalid,
            ))
            print(result["message"])
            for skipped in result["skipped"]:
                print(f"Skipped {skipped['person']}: {'; '.join(skipped['errors'])}")
            if result["unresolved"]:
                print(f"Billed to your account (no matching friend): {', '.join(result['unresolved'])}")

    except (OSError, json.JSONDecodeError, ValidationError) as e:
        sys.exit(f"Error: could not read order: {e}")
    except ProviderNotConfiguredError as e:
        sys.exit(f"Error: {e}")
    except InvalidExpenseError as e:
        sys.exit(f"Error: {'; '.join(e.errors)}")
    except SplitwiseAPIError as e:
        if e.status_code == 401:
            sys.exit("Error: invalid API key. Please check your Splitwise API key.")
        if e.status_code == 403:
            sys.exit("Error: access forbidden. Please check your API permissions.")
        sys.exit(f"Error: {e}")


if __name__ == "__main__":
    main()
