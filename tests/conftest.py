from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

import pytest

from gemini_cli.config import ExecutionConfig, GeminiConfig
from gemini_cli.exceptions import NoLiquidityError
from gemini_cli.models import (
    Balance,
    BookEntry,
    CancelAllResult,
    Market,
    Order,
    OrderOption,
    OrderSide,
    Ticker,
    TopOfBook,
    Trade,
)


def make_order(
    order_id: str = "1001",
    symbol: str = "btcusd",
    side: OrderSide = OrderSide.BUY,
    price: Union[str, Decimal] = "50000",
    original: Union[str, Decimal] = "0.001995",
    executed: Optional[Union[str, Decimal]] = None,
    avg_price: Optional[Union[str, Decimal]] = None,
    options: Optional[List[str]] = None,
) -> Order:
    """Build an order status the way the exchange reports it."""
    executed = Decimal(str(original if executed is None else executed))
    original = Decimal(str(original))
    return Order(
        order_id=order_id,
        symbol=symbol,
        side=side,
        price=Decimal(str(price)),
        original_amount=original,
        executed_amount=executed,
        remaining_amount=original - executed,
        avg_execution_price=Decimal(str(avg_price if avg_price is not None else price)),
        is_live=False,
        is_cancelled=executed < original,
        timestampms=1700000000000,
        options=options or [OrderOption.IMMEDIATE_OR_CANCEL.value],
    )


class MockExchange:
    """
    In-memory exchange used to drive the execution engine.

    Book levels are served in order and the last one repeats. Submitted
    immediate-or-cancel orders fill up to the displayed amount at the level
    price unless ``avg_price`` overrides the execution price.
    """

    def __init__(
        self,
        levels: Union[BookEntry, Iterable[Optional[BookEntry]]],
        avg_price: Optional[Decimal] = None,
        submit_error: Optional[Exception] = None,
        fail_on_submission: Optional[int] = None,
    ) -> None:
        self.levels: List[Optional[BookEntry]] = (
            [levels] if isinstance(levels, BookEntry) else list(levels)
        )
        self.avg_price = avg_price
        self.submit_error = submit_error
        self.fail_on_submission = fail_on_submission
        self.book_queries = 0
        self.submissions: List[Dict[str, Any]] = []
        self._current: Optional[BookEntry] = None

    def get_top_of_book(self, market: Market, side: OrderSide) -> BookEntry:
        idx = min(self.book_queries, len(self.levels) - 1)
        self.book_queries += 1
        entry = self.levels[idx]
        if entry is None:
            raise NoLiquidityError(
                "No asks in book" if side == OrderSide.BUY else "No bids in book"
            )
        self._current = entry
        return entry

    def submit_order(
        self,
        market: Market,
        side: OrderSide,
        amount: Decimal,
        price: Decimal,
        option: OrderOption,
    ) -> Order:
        self.submissions.append(
            {"market": market, "side": side, "amount": amount, "price": price, "option": option}
        )
        if self.submit_error is not None and (
            self.fail_on_submission is None or len(self.submissions) == self.fail_on_submission
        ):
            raise self.submit_error

        available = self._current.amount if self._current is not None else amount
        executed = min(amount, available)
        return make_order(
            order_id=str(1000 + len(self.submissions)),
            symbol=market.value,
            side=side,
            price=price,
            original=amount,
            executed=executed,
            avg_price=self.avg_price if self.avg_price is not None else price,
            options=[option.value],
        )

    @property
    def submitted_amounts(self) -> List[Decimal]:
        return [s["amount"] for s in self.submissions]


class MockCLIClient(MockExchange):
    """Exchange double exposing the full client surface used by the CLI."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.closed = False

    def __enter__(self) -> "MockCLIClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.closed = True

    def get_book(self, market: Market) -> TopOfBook:
        return TopOfBook(
            market=market,
            bid=BookEntry(price=Decimal("49990"), amount=Decimal("0.75")),
            ask=BookEntry(price=Decimal("50000"), amount=Decimal("1.25")),
        )

    def get_ticker(self, market: Market) -> Ticker:
        return Ticker(
            bid=Decimal("49990"),
            ask=Decimal("50000"),
            last=Decimal("49995.5"),
            volume={"BTC": "1234.5", "USD": "61700000", "timestamp": 1700000000000},
        )

    def get_balances(self) -> List[Balance]:
        return [
            Balance(currency="BTC", amount=Decimal("1.5"), available=Decimal("1.5")),
            Balance(currency="USD", amount=Decimal("2500.00"), available=Decimal("2000.00")),
        ]

    def get_active_orders(self) -> List[Order]:
        return [make_order(order_id="2001"), make_order(order_id="2002", executed="0")]

    def get_order_status(self, order_id: str) -> Order:
        return make_order(order_id=order_id)

    def cancel_order(self, order_id: str) -> Order:
        return make_order(order_id=order_id, executed="0")

    def cancel_all(self) -> CancelAllResult:
        return CancelAllResult.model_validate(
            {"result": "ok", "details": {"cancelledOrders": [2001, 2002], "cancelRejects": []}}
        )

    def get_past_trades(self, market: Market, limit: int = 20) -> List[Trade]:
        return [
            Trade(
                tid=501,
                order_id="2001",
                price=Decimal("50000"),
                amount=Decimal("0.01"),
                timestamp=1700000000,
                type="Buy",
                aggressor=True,
                fee_currency="USD",
                fee_amount=Decimal("1.25"),
            )
        ][:limit]


@pytest.fixture
def execution_config() -> ExecutionConfig:
    """Execution limits independent of the environment."""
    return ExecutionConfig(max_retries=50, default_fee_bps=25)


@pytest.fixture
def gemini_config() -> GeminiConfig:
    """Gemini configuration with sandbox and live credentials."""
    return GeminiConfig(
        api_key="live-key-123456",
        api_secret="live-secret-123456",
        sandbox_api_key="sandbox-key-123456",
        sandbox_api_secret="sandbox-secret-123456",
        live_url="https://api.gemini.com",
        sandbox_url="https://api.sandbox.gemini.com",
        timeout=5.0,
    )


@pytest.fixture
def btc_level() -> BookEntry:
    """Deep BTC-USD ask at 50000."""
    return BookEntry(price=Decimal("50000"), amount=Decimal("1.0"))


@pytest.fixture
def exchange_factory():
    """Factory building scripted exchanges for the execution engine."""
    return MockExchange


@pytest.fixture
def cli_client_factory():
    """Factory building exchange doubles for CLI commands."""
    return MockCLIClient


@pytest.fixture
def order_factory():
    """Factory building exchange order statuses."""
    return make_order
