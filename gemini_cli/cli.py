"""
Command Line Interface for the Gemini exchange.

This module provides commands to query market data and account state and to
submit limit and market orders. Market orders are executed by sweeping the
top of the book with immediate-or-cancel orders.
"""

import functools
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

import typer

from .client import GeminiClient
from .config import get_config
from .exceptions import ERROR_AMBIGUOUS_AMOUNT, GeminiCLIError, InvalidInputError
from .execution_engine import ExecutionEngine
from .formatting import (
    console,
    print_balances,
    print_book,
    print_cancel_all,
    print_error,
    print_json,
    print_order,
    print_orders,
    print_sweep_summary,
    print_ticker,
    print_trades,
)
from .models import ExecutionRequest, Market, Order, OrderSide
from .utils import setup_logging

app = typer.Typer(help="Gemini exchange CLI", no_args_is_help=True)

logger = logging.getLogger(__name__)


def create_client(live: bool) -> GeminiClient:
    """Build an exchange client for the selected environment."""
    return GeminiClient(get_config().gemini, live=live)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Report client and execution errors on stderr and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except GeminiCLIError as e:
            print_error(e)
            raise typer.Exit(1)

    return wrapper


def parse_market(value: str) -> Market:
    try:
        return Market.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e))


def parse_decimal(value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        raise typer.BadParameter(f"'{value}' is not a valid number")


def build_request(
    market: Market, side: OrderSide, amt: Optional[Decimal], base_amt: Optional[Decimal], bps: Optional[int]
) -> ExecutionRequest:
    if amt is not None and base_amt is not None and amt > 0 and base_amt > 0:
        raise InvalidInputError(ERROR_AMBIGUOUS_AMOUNT, error_code="AMBIGUOUS_AMOUNT")
    return ExecutionRequest(
        market=market,
        side=side,
        amount=amt,
        base_amount=base_amt,
        fee_bps=get_config().execution.default_fee_bps if bps is None else bps,
    )


@app.callback()
def main(
    ctx: typer.Context,
    live: bool = typer.Option(
        False, "--live", help="Live mode: use production credentials and endpoint"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Gemini exchange command line client."""
    setup_logging(get_config(), level="DEBUG" if verbose else None)
    ctx.obj = {"live": live}


MKT_OPTION = typer.Option(
    "btcusd", "--mkt", callback=parse_market, help="Market: btcusd, ethusd, ethbtc"
)
SIDE_OPTION = typer.Option(OrderSide.BUY, "--side", help="Side: buy, sell")
AMT_OPTION = typer.Option(None, "--amt", callback=parse_decimal, help="Amount of quote currency")
BASE_AMT_OPTION = typer.Option(
    None, "--base-amt", callback=parse_decimal, help="Amount of base currency"
)
BPS_OPTION = typer.Option(None, "--bps", help="Fee basis points (default 25)")
JSON_OPTION = typer.Option(False, "--json", help="Return in JSON format")
TXID_OPTION = typer.Option(..., "--txid", help="Id of order")


@handle_errors
def market(
    ctx: typer.Context,
    mkt: str = MKT_OPTION,
    side: OrderSide = SIDE_OPTION,
    amt: Optional[str] = AMT_OPTION,
    base_amt: Optional[str] = BASE_AMT_OPTION,
    bps: Optional[int] = BPS_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Create a market order."""
    request = build_request(mkt, side, amt, base_amt, bps)

    def on_fill(order: Order) -> None:
        if not json_output:
            print_order(order)
            console.print("")

    with create_client(ctx.obj["live"]) as client:
        engine = ExecutionEngine(client, get_config().execution)
        try:
            result = engine.execute_market_order(request, on_fill=on_fill)
        except GeminiCLIError as e:
            if json_output and e.partial_fills:
                print_json(e.partial_fills)
            raise

    if json_output:
        print_json(result.fills)
        return

    print_sweep_summary(result)


@handle_errors
def limit(
    ctx: typer.Context,
    mkt: str = MKT_OPTION,
    side: OrderSide = SIDE_OPTION,
    amt: Optional[str] = AMT_OPTION,
    base_amt: Optional[str] = BASE_AMT_OPTION,
    bps: Optional[int] = BPS_OPTION,
    price: Optional[str] = typer.Option(
        None, "--price", callback=parse_decimal, help="Price of parent denomination"
    ),
    json_output: bool = JSON_OPTION,
) -> None:
    """Create a limit order."""
    request = build_request(mkt, side, amt, base_amt, bps)

    with create_client(ctx.obj["live"]) as client:
        engine = ExecutionEngine(client, get_config().execution)
        order = engine.place_limit_order(request, price)

    if json_output:
        print_json(order)
        return

    print_order(order)


@handle_errors
def book(
    ctx: typer.Context, mkt: str = MKT_OPTION, json_output: bool = JSON_OPTION
) -> None:
    """Get best bid and ask."""
    with create_client(ctx.obj["live"]) as client:
        top = client.get_book(mkt)

    if json_output:
        print_json(top)
        return

    print_book(top)


@handle_errors
def ticker(
    ctx: typer.Context, mkt: str = MKT_OPTION, json_output: bool = JSON_OPTION
) -> None:
    """Get ticker."""
    with create_client(ctx.obj["live"]) as client:
        t = client.get_ticker(mkt)

    if json_output:
        print_json(t)
        return

    print_ticker(t, mkt)


@handle_errors
def balances(ctx: typer.Context, json_output: bool = JSON_OPTION) -> None:
    """Get fund balances."""
    with create_client(ctx.obj["live"]) as client:
        funds = client.get_balances()

    if json_output:
        print_json(funds)
        return

    print_balances(funds)


@handle_errors
def active(ctx: typer.Context, json_output: bool = JSON_OPTION) -> None:
    """List active orders."""
    with create_client(ctx.obj["live"]) as client:
        orders = client.get_active_orders()

    if json_output:
        print_json(orders)
        return

    print_orders(orders)


@handle_errors
def status(
    ctx: typer.Context, txid: str = TXID_OPTION, json_output: bool = JSON_OPTION
) -> None:
    """Get status of active order."""
    with create_client(ctx.obj["live"]) as client:
        order = client.get_order_status(txid)

    if json_output:
        print_json(order)
        return

    print_order(order)


@handle_errors
def cancel(
    ctx: typer.Context, txid: str = TXID_OPTION, json_output: bool = JSON_OPTION
) -> None:
    """Cancel active order by txid."""
    with create_client(ctx.obj["live"]) as client:
        order = client.cancel_order(txid)

    if json_output:
        print_json(order)
        return

    print_order(order)


@handle_errors
def cancel_all(ctx: typer.Context, json_output: bool = JSON_OPTION) -> None:
    """Cancel all active orders."""
    with create_client(ctx.obj["live"]) as client:
        result = client.cancel_all()

    if json_output:
        print_json(result)
        return

    print_cancel_all(result)


@handle_errors
def trades(
    ctx: typer.Context,
    mkt: str = MKT_OPTION,
    lim: int = typer.Option(20, "--lim", min=1, max=500, help="Limit for list query"),
    json_output: bool = JSON_OPTION,
) -> None:
    """List most recent trades."""
    with create_client(ctx.obj["live"]) as client:
        past = client.get_past_trades(mkt, lim)

    if json_output:
        print_json(past)
        return

    print_trades(past)


COMMANDS = [
    ("market", "m", market),
    ("limit", "l", limit),
    ("book", "bk", book),
    ("ticker", "tr", ticker),
    ("balances", "b", balances),
    ("active", "a", active),
    ("status", "s", status),
    ("cancel", "c", cancel),
    ("cancel-all", "ca", cancel_all),
    ("trades", "t", trades),
]

for _name, _alias, _command in COMMANDS:
    app.command(_name)(_command)
    app.command(_alias, hidden=True)(_command)


if __name__ == "__main__":
    app()
