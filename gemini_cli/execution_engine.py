"""
Order Execution Engine.

This module implements the market-order liquidity sweep. Gemini only accepts
limit orders, so a market order is emulated by repeatedly taking the best
level of the book with immediate-or-cancel orders until the requested amount
has been filled or the iteration ceiling is reached.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, List, Optional, Protocol

from .config import ExecutionConfig
from .exceptions import (
    ERROR_AMBIGUOUS_AMOUNT,
    ERROR_INVALID_AMOUNT,
    ERROR_INVALID_BPS,
    ERROR_INVALID_PRICE,
    GeminiCLIError,
    InvalidInputError,
    MaxRetriesExceededError,
)
from .models import (
    AmountDenomination,
    BookEntry,
    ExecutionRequest,
    Market,
    Order,
    OrderOption,
    OrderSide,
)
from .utils import fee_ratio, round_half_up

logger = logging.getLogger(__name__)

QUOTE_MIN_FILL = Decimal("0.01")
BASE_MIN_FILL = Decimal("0.0001")
DEFAULT_MIN_FILL = Decimal("0.000001")


class QuoteService(Protocol):
    """Source of the best book level for a market and side."""

    def get_top_of_book(self, market: Market, side: OrderSide) -> BookEntry:
        ...


class OrderGateway(Protocol):
    """Order submission endpoint."""

    def submit_order(
        self,
        market: Market,
        side: OrderSide,
        amount: Decimal,
        price: Decimal,
        option: OrderOption,
    ) -> Order:
        ...


class ExchangeGateway(QuoteService, OrderGateway, Protocol):
    """Both collaborators of the execution engine."""


class SweepStatus(str, Enum):
    """Sweep state machine."""
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ExecutionState:
    """Mutable accumulator owned by a single sweep."""

    accumulated_amount: Decimal = Decimal("0")
    retry_count: int = 0
    fills: List[Order] = field(default_factory=list)
    status: SweepStatus = SweepStatus.RUNNING


@dataclass
class SweepResult:
    """Outcome of a completed sweep."""

    request: ExecutionRequest
    denomination: AmountDenomination
    target: Decimal
    accumulated_amount: Decimal
    iterations: int
    fills: List[Order]

    @property
    def executed_base_amount(self) -> Decimal:
        return sum((f.executed_amount for f in self.fills), Decimal("0"))

    @property
    def executed_quote_amount(self) -> Decimal:
        return sum((f.notional for f in self.fills), Decimal("0"))


def min_fill_amount(market: Market, denomination: AmountDenomination) -> Decimal:
    """Tolerance below the target at which a sweep counts as complete."""
    if denomination is AmountDenomination.QUOTE and market in (Market.BTCUSD, Market.ETHUSD):
        return QUOTE_MIN_FILL
    if denomination is AmountDenomination.BASE and market in (Market.ETHBTC, Market.ETHUSD):
        return BASE_MIN_FILL
    return DEFAULT_MIN_FILL


def fee_adjusted_target(raw: Decimal, side: OrderSide, bps: int) -> Decimal:
    """
    Adjust a requested amount for the assumed trading fee.

    Buyers receive the fee-reduced amount, so the sweep aims lower; sellers
    must sell slightly more to net the requested amount.
    """
    ratio = fee_ratio(bps)
    if side == OrderSide.BUY:
        return raw * (1 - ratio)
    return raw * (1 + ratio)


def validate_request(request: ExecutionRequest) -> AmountDenomination:
    """
    Check that exactly one target amount is positive.

    Returns:
        The accounting direction of the request

    Raises:
        InvalidInputError: On ambiguous, missing or out-of-range values
    """
    quote_set = request.amount is not None and request.amount > 0
    base_set = request.base_amount is not None and request.base_amount > 0

    if quote_set and base_set:
        raise InvalidInputError(ERROR_AMBIGUOUS_AMOUNT, error_code="AMBIGUOUS_AMOUNT")
    if not quote_set and not base_set:
        raise InvalidInputError(ERROR_INVALID_AMOUNT, error_code="INVALID_AMOUNT")
    if not (0 <= request.fee_bps < 10000):
        raise InvalidInputError(ERROR_INVALID_BPS, error_code="INVALID_BPS")

    return AmountDenomination.QUOTE if quote_set else AmountDenomination.BASE


class ExecutionEngine:
    """
    Sizes and submits orders against the live top of book.

    The engine holds no credentials and no module-level state: the exchange
    collaborator and the execution limits are passed in explicitly.
    """

    def __init__(self, exchange: ExchangeGateway, config: Optional[ExecutionConfig] = None):
        self.exchange = exchange
        self.config = config or ExecutionConfig()

    def execute_market_order(
        self,
        request: ExecutionRequest,
        on_fill: Optional[Callable[[Order], None]] = None,
    ) -> SweepResult:
        """
        Sweep the book until the requested amount is filled.

        Args:
            request: Market, side, target amount and fee assumption
            on_fill: Called with every fill as soon as it is received

        Returns:
            The completed sweep with all fills in submission order

        Raises:
            InvalidInputError: Before any network call, on a bad request
            NoLiquidityError: When the side of the book to take is empty
            GeminiAPIError: When the exchange rejects or fails a request
            MaxRetriesExceededError: When the iteration ceiling is reached
        """
        denomination = validate_request(request)
        market = request.market
        decimals = market.decimals
        target = fee_adjusted_target(request.raw_target, request.side, request.fee_bps)
        tolerance = min_fill_amount(market, denomination)
        state = ExecutionState()

        logger.info(
            f"Starting {request.side.value} sweep on {market.value}: "
            f"{denomination.value} target {target} (raw {request.raw_target}, {request.fee_bps} bps)"
        )

        try:
            while state.status is SweepStatus.RUNNING:
                remaining = target - state.accumulated_amount
                if remaining <= 0:
                    state.status = SweepStatus.DONE
                    break

                entry = self.exchange.get_top_of_book(market, request.side)

                if denomination is AmountDenomination.QUOTE:
                    size = round_half_up(remaining / entry.price, decimals)
                else:
                    size = round_half_up(remaining, decimals)

                if entry.amount < size:
                    size = round_half_up(entry.amount, decimals)

                if size > 0:
                    logger.info(
                        f"Slice {state.retry_count + 1}: {size} @ {entry.price} "
                        f"(remaining {remaining}, book {entry.amount})"
                    )
                    fill = self.exchange.submit_order(
                        market, request.side, size, entry.price, OrderOption.IMMEDIATE_OR_CANCEL
                    )
                    state.fills.append(fill)
                    if on_fill is not None:
                        on_fill(fill)

                    if denomination is AmountDenomination.QUOTE:
                        state.accumulated_amount += fill.executed_amount * fill.avg_execution_price
                    else:
                        state.accumulated_amount += fill.executed_amount
                else:
                    logger.warning(f"Book level {entry.amount} @ {entry.price} rounds to zero, skipping")

                if state.accumulated_amount >= target - tolerance:
                    state.status = SweepStatus.DONE
                    break

                state.retry_count += 1
                if state.retry_count >= self.config.max_retries:
                    state.status = SweepStatus.FAILED
                    raise MaxRetriesExceededError(
                        state.retry_count, state.accumulated_amount, target
                    )

        except GeminiCLIError as e:
            state.status = SweepStatus.FAILED
            e.partial_fills = list(state.fills)
            logger.error(
                f"Sweep failed after {len(state.fills)} fills "
                f"({state.accumulated_amount} of {target}): {e}"
            )
            raise

        logger.info(
            f"Sweep done: {state.accumulated_amount} of {target} in {len(state.fills)} fills"
        )
        return SweepResult(
            request=request,
            denomination=denomination,
            target=target,
            accumulated_amount=state.accumulated_amount,
            iterations=state.retry_count + 1,
            fills=state.fills,
        )

    def place_limit_order(self, request: ExecutionRequest, price: Decimal) -> Order:
        """
        Place a single maker-or-cancel order at ``price``.

        A quote-denominated request is converted to a base quantity at the
        limit price after the fee adjustment.
        """
        if price is None or price <= 0:
            raise InvalidInputError(ERROR_INVALID_PRICE, error_code="INVALID_PRICE")
        denomination = validate_request(request)

        target = fee_adjusted_target(request.raw_target, request.side, request.fee_bps)
        if denomination is AmountDenomination.QUOTE:
            size = round_half_up(target / price, request.market.decimals)
        else:
            size = round_half_up(target, request.market.decimals)

        if size <= 0:
            raise InvalidInputError(ERROR_INVALID_AMOUNT, error_code="INVALID_AMOUNT")

        return self.exchange.submit_order(
            request.market, request.side, size, price, OrderOption.MAKER_OR_CANCEL
        )
