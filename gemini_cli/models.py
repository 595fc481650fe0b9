"""
Pydantic models for the Gemini command-line client.

This module defines the data models exchanged with the Gemini REST API,
including order book entries, orders, balances, tickers and trades, as well
as the execution request accepted by the execution engine.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Market(str, Enum):
    """Supported trading pairs."""
    BTCUSD = "btcusd"
    ETHUSD = "ethusd"
    ETHBTC = "ethbtc"

    @classmethod
    def parse(cls, value: str) -> "Market":
        """Parse a market symbol, accepting both ``btcusd`` and ``BTC-USD``."""
        normalized = value.replace("-", "").replace("/", "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid market '{value}'. Must be one of: {valid}")

    @property
    def base_currency(self) -> str:
        return self.value[:3]

    @property
    def quote_currency(self) -> str:
        return self.value[3:]

    @property
    def decimals(self) -> int:
        """Fractional digits used when rounding traded quantities."""
        return 8 if self is Market.BTCUSD else 6


class OrderSide(str, Enum):
    """Order side enumeration."""
    BUY = "buy"
    SELL = "sell"


class OrderOption(str, Enum):
    """Execution options accepted for exchange limit orders."""
    MAKER_OR_CANCEL = "maker-or-cancel"
    IMMEDIATE_OR_CANCEL = "immediate-or-cancel"


class AmountDenomination(str, Enum):
    """Currency in which a requested amount is expressed."""
    QUOTE = "quote"
    BASE = "base"


class BookEntry(BaseModel):
    """Single price level of the order book."""

    price: Decimal = Field(..., gt=0, description="Level price in quote currency")
    amount: Decimal = Field(..., ge=0, description="Quantity available at this price")

    model_config = ConfigDict(frozen=True)

    @field_serializer('price', 'amount')
    def serialize_decimal(self, value: Decimal) -> str:
        return str(value)


class TopOfBook(BaseModel):
    """Best bid and best ask of a market."""

    market: Market = Field(..., description="Trading pair")
    bid: Optional[BookEntry] = Field(None, description="Highest bid")
    ask: Optional[BookEntry] = Field(None, description="Lowest ask")

    model_config = ConfigDict(frozen=True)


class ExecutionRequest(BaseModel):
    """Order sizing request handled by the execution engine."""

    market: Market = Field(..., description="Trading pair")
    side: OrderSide = Field(..., description="Order side (buy/sell)")
    amount: Optional[Decimal] = Field(None, description="Target amount in quote currency")
    base_amount: Optional[Decimal] = Field(None, description="Target amount in base currency")
    fee_bps: int = Field(default=25, description="Assumed trading fee in basis points")

    model_config = ConfigDict(frozen=True)

    @property
    def denomination(self) -> Optional[AmountDenomination]:
        """Accounting direction selected by which target amount is positive."""
        if self.amount is not None and self.amount > 0:
            return AmountDenomination.QUOTE
        if self.base_amount is not None and self.base_amount > 0:
            return AmountDenomination.BASE
        return None

    @property
    def raw_target(self) -> Decimal:
        """Requested amount in the sweep's accounting currency."""
        if self.denomination is AmountDenomination.QUOTE:
            return self.amount
        if self.denomination is AmountDenomination.BASE:
            return self.base_amount
        return Decimal("0")

    @field_serializer('amount', 'base_amount')
    def serialize_decimal(self, value: Optional[Decimal]) -> Optional[str]:
        return str(value) if value is not None else None


class Order(BaseModel):
    """Order status as reported by the exchange."""

    order_id: str = Field(..., description="Exchange order ID")
    client_order_id: Optional[str] = Field(None, description="Client-specified order ID")
    symbol: str = Field(..., description="Trading symbol")
    exchange: str = Field(default="gemini", description="Exchange name")
    side: OrderSide = Field(..., description="Order side")
    type: str = Field(default="exchange limit", description="Order type")
    price: Decimal = Field(default=Decimal("0"), description="Limit price")
    original_amount: Decimal = Field(default=Decimal("0"), description="Requested amount")
    executed_amount: Decimal = Field(default=Decimal("0"), description="Filled amount")
    remaining_amount: Decimal = Field(default=Decimal("0"), description="Unfilled amount")
    avg_execution_price: Decimal = Field(default=Decimal("0"), description="Average fill price")
    is_live: bool = Field(default=False, description="Order is resting on the book")
    is_cancelled: bool = Field(default=False, description="Order was cancelled")
    timestampms: Optional[int] = Field(None, description="Creation time in milliseconds")
    options: List[str] = Field(default_factory=list, description="Execution options")

    model_config = ConfigDict(frozen=True)

    @property
    def notional(self) -> Decimal:
        """Executed value in quote currency."""
        return self.executed_amount * self.avg_execution_price

    @field_serializer('price', 'original_amount', 'executed_amount', 'remaining_amount', 'avg_execution_price')
    def serialize_decimal(self, value: Decimal) -> str:
        return str(value)


class Balance(BaseModel):
    """Fund balance of one currency."""

    type: str = Field(default="exchange", description="Account type")
    currency: str = Field(..., description="Currency code")
    amount: Decimal = Field(..., description="Total balance")
    available: Decimal = Field(default=Decimal("0"), description="Balance available for trading")
    available_for_withdrawal: Decimal = Field(
        default=Decimal("0"), alias="availableForWithdrawal", description="Balance available for withdrawal"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer('amount', 'available', 'available_for_withdrawal')
    def serialize_decimal(self, value: Decimal) -> str:
        return str(value)


class Ticker(BaseModel):
    """Public ticker of a market."""

    bid: Decimal = Field(..., description="Best bid")
    ask: Decimal = Field(..., description="Best ask")
    last: Decimal = Field(..., description="Last trade price")
    volume: Dict[str, Any] = Field(default_factory=dict, description="24h volume by currency")

    def base_volume(self, market: Market) -> Optional[Decimal]:
        """24h volume denominated in the market's base currency."""
        value = self.volume.get(market.base_currency.upper())
        return Decimal(str(value)) if value is not None else None

    @field_serializer('bid', 'ask', 'last')
    def serialize_decimal(self, value: Decimal) -> str:
        return str(value)


class Trade(BaseModel):
    """Completed trade from the account history."""

    tid: int = Field(..., description="Trade ID")
    order_id: str = Field(..., description="Associated order ID")
    price: Decimal = Field(..., description="Execution price")
    amount: Decimal = Field(..., description="Executed amount")
    timestamp: int = Field(..., description="Execution time in seconds")
    timestampms: Optional[int] = Field(None, description="Execution time in milliseconds")
    type: str = Field(..., description="Buy or Sell")
    aggressor: bool = Field(default=False, description="Trade took liquidity")
    fee_currency: Optional[str] = Field(None, description="Fee currency")
    fee_amount: Decimal = Field(default=Decimal("0"), description="Fee paid")

    @property
    def is_maker(self) -> bool:
        """Check if trade provided liquidity."""
        return not self.aggressor

    @field_serializer('price', 'amount', 'fee_amount')
    def serialize_decimal(self, value: Decimal) -> str:
        return str(value)


class CancelAllDetails(BaseModel):
    """Outcome of a cancel-all request."""

    cancelled_orders: List[Any] = Field(default_factory=list, alias="cancelledOrders")
    cancel_rejects: List[Any] = Field(default_factory=list, alias="cancelRejects")

    model_config = ConfigDict(populate_by_name=True)


class CancelAllResult(BaseModel):
    """Response to a cancel-all request."""

    result: str = Field(default="ok", description="Request result")
    details: CancelAllDetails = Field(default_factory=CancelAllDetails)
