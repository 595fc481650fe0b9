"""
Terminal rendering of exchange objects.

Text output uses rich markup; JSON output is plain so it can be piped.
"""

import json
from typing import Any, Callable, Iterable, Sequence

from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape

from .execution_engine import SweepResult
from .models import Balance, CancelAllResult, Market, Order, Ticker, TopOfBook, Trade
from .utils import format_amount

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def label(text: str) -> str:
    return f"[bright_blue]{text}[/bright_blue]"


def emphasis(text: Any) -> str:
    return f"[bold white]{escape(str(text))}[/bold white]"


def to_jsonable(data: Any) -> Any:
    """Convert models (or lists of models) to JSON-compatible structures."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    return data


def print_json(data: Any) -> None:
    """Print compact JSON on stdout without markup processing."""
    console.print(json.dumps(to_jsonable(data)), markup=False, soft_wrap=True)


def print_error(err: Exception) -> None:
    err_console.print(f"[red]Error[/red]: {escape(str(err))}")


def print_order(order: Order) -> None:
    rows = [
        ("OrderId", "\t\t", emphasis(order.order_id)),
        ("Symbol", "\t\t\t", order.symbol),
        ("Side", "\t\t\t", order.side.value),
        ("Price", "\t\t\t", format_amount(order.price)),
        ("OriginalAmount", "\t\t", format_amount(order.original_amount)),
        ("ExecutedAmount", "\t\t", format_amount(order.executed_amount)),
        ("RemainingAmount", "\t", format_amount(order.remaining_amount)),
        ("AvgExecutionPrice", "\t", format_amount(order.avg_execution_price)),
        ("IsLive", "\t\t\t", str(order.is_live).lower()),
        ("IsCancelled", "\t\t", str(order.is_cancelled).lower()),
    ]
    for name, sep, value in rows:
        console.print(f"{label(name)}:{sep}{value}")


def print_orders(orders: Sequence[Order]) -> None:
    _print_blocks(orders, print_order)


def print_trade(trade: Trade) -> None:
    console.print(f"{label('OrderId')}:\t{emphasis(trade.order_id)}")
    console.print(f"{label('Timestamp')}:\t{trade.timestamp}")
    console.print(f"{label('Type')}:\t\t{trade.type}")
    console.print(f"{label('Price')}:\t\t{format_amount(trade.price)}")
    console.print(f"{label('Amount')}:\t\t{format_amount(trade.amount)}")
    console.print(f"{label('FeeAmount')}:\t{format_amount(trade.fee_amount)}")
    console.print(f"{label('Maker')}:\t\t{str(trade.is_maker).lower()}")


def print_trades(trades: Sequence[Trade]) -> None:
    _print_blocks(trades, print_trade)


def print_balances(balances: Iterable[Balance]) -> None:
    for fund in balances:
        console.print(f"{label(fund.currency)}: {fund.amount}")


def print_book(book: TopOfBook) -> None:
    """Best ask above best bid, as on an exchange ladder."""
    for entry in (book.ask, book.bid):
        if entry is None:
            console.print("[dim]-[/dim]")
            continue
        console.print(f"{emphasis(format_amount(entry.price))}\t{format_amount(entry.amount)}")


def print_ticker(ticker: Ticker, market: Market) -> None:
    volume = ticker.base_volume(market)
    console.print(f"{label('Bid')}:\t{emphasis(ticker.bid)}")
    console.print(f"{label('Ask')}:\t{emphasis(ticker.ask)}")
    console.print(f"{label('Last')}:\t{format_amount(ticker.last)}")
    console.print(f"{label('Volume')}:\t{volume if volume is not None else '-'}")


def print_cancel_all(result: CancelAllResult) -> None:
    console.print(f"{label('Cancelled Orders')}: {escape(str(result.details.cancelled_orders))}")
    console.print(f"{label('Rejected Orders')}: {escape(str(result.details.cancel_rejects))}")


def print_sweep_summary(result: SweepResult) -> None:
    market = result.request.market
    console.print(
        f"{label('Filled')}: {format_amount(result.executed_base_amount)} {market.base_currency.upper()} "
        f"for {format_amount(result.executed_quote_amount)} {market.quote_currency.upper()} "
        f"in {len(result.fills)} order(s)"
    )


def _print_blocks(items: Sequence[Any], printer: Callable[[Any], None]) -> None:
    for idx, item in enumerate(items):
        printer(item)
        if idx < len(items) - 1:
            console.print("")
