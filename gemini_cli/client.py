"""
Gemini REST API client.

This module provides a synchronous interface to the Gemini v1 REST API:
public market data (order book, ticker) and authenticated account and order
endpoints. Private requests are signed with HMAC-SHA384 over a base64 JSON
payload as required by the exchange.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import GeminiConfig
from .exceptions import (
    ERROR_API_KEY_MISSING,
    ERROR_NO_ASKS,
    ERROR_NO_BIDS,
    AuthError,
    GeminiAPIError,
    NoLiquidityError,
    RejectedError,
    TransportError,
)
from .models import (
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

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

AUTH_REASONS = {
    "InvalidSignature",
    "InvalidApiKey",
    "MissingApikeyHeader",
    "MissingPayloadHeader",
    "MissingSignatureHeader",
    "InvalidNonce",
    "InsufficientRole",
}


class GeminiClient:
    """
    Gemini API client.

    Provides methods for:
    - Top-of-book and ticker queries
    - Order placement, status and cancellation
    - Balances and trade history
    """

    def __init__(
        self,
        config: GeminiConfig,
        live: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize client for the live or sandbox environment."""
        self.config = config
        self.live = live
        self._api_key, self._api_secret = config.credentials(live)
        self._last_nonce = 0
        self._http = httpx.Client(
            base_url=config.base_url(live),
            timeout=config.timeout,
            transport=transport,
        )
        logger.debug(
            f"Gemini client initialized for {'live' if live else 'sandbox'} trading"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key and self._api_secret)

    # Market data

    def get_top_of_book(self, market: Market, side: OrderSide) -> BookEntry:
        """
        Get the best level an order on ``side`` would trade against.

        Buying takes the lowest ask, selling takes the highest bid.

        Raises:
            NoLiquidityError: If that side of the book is empty
        """
        book = self.get_book(market)
        if side == OrderSide.BUY:
            if book.ask is None:
                raise NoLiquidityError(ERROR_NO_ASKS, error_code="NO_ASKS")
            return book.ask

        if book.bid is None:
            raise NoLiquidityError(ERROR_NO_BIDS, error_code="NO_BIDS")
        return book.bid

    def get_book(self, market: Market) -> TopOfBook:
        """Get the best bid and best ask of a market."""
        path = f"/v1/book/{market.value}"
        data = self._public_get(path, params={"limit_bids": 1, "limit_asks": 1})
        bids = data.get("bids") if isinstance(data, dict) else None
        asks = data.get("asks") if isinstance(data, dict) else None
        if not isinstance(bids, list) or not isinstance(asks, list):
            raise TransportError(
                f"Malformed response from {path}: expected bids and asks",
                error_code="MALFORMED_RESPONSE",
            )
        return _parse(
            TopOfBook,
            {"market": market, "bid": bids[0] if bids else None, "ask": asks[0] if asks else None},
            path,
        )

    def get_ticker(self, market: Market) -> Ticker:
        """Get the public ticker of a market."""
        path = f"/v1/pubticker/{market.value}"
        return _parse(Ticker, self._public_get(path), path)

    # Orders

    def submit_order(
        self,
        market: Market,
        side: OrderSide,
        amount: Decimal,
        price: Decimal,
        option: OrderOption,
        client_order_id: Optional[str] = None,
    ) -> Order:
        """
        Place an exchange limit order with the given execution option.

        Args:
            market: Trading pair
            side: Order side
            amount: Quantity in base currency
            price: Limit price in quote currency
            option: maker-or-cancel or immediate-or-cancel
            client_order_id: Optional client-specified ID

        Returns:
            Order status after submission
        """
        payload: Dict[str, Any] = {
            "symbol": market.value,
            "amount": str(amount),
            "price": str(price),
            "side": side.value,
            "type": "exchange limit",
            "options": [option.value],
        }
        if client_order_id:
            payload["client_order_id"] = client_order_id

        logger.info(
            f"Submitting {option.value} {side.value} {amount} {market.value} @ {price}"
        )
        order = _parse(Order, self._private_post("/v1/order/new", payload), "/v1/order/new")
        logger.info(
            f"Order {order.order_id} executed {order.executed_amount} "
            f"@ {order.avg_execution_price}"
        )
        return order

    def get_order_status(self, order_id: str) -> Order:
        """Get the status of an order."""
        data = self._private_post("/v1/order/status", {"order_id": _order_id(order_id)})
        return _parse(Order, data, "/v1/order/status")

    def cancel_order(self, order_id: str) -> Order:
        """Cancel an active order."""
        logger.info(f"Cancelling order {order_id}")
        data = self._private_post("/v1/order/cancel", {"order_id": _order_id(order_id)})
        return _parse(Order, data, "/v1/order/cancel")

    def cancel_all(self) -> CancelAllResult:
        """Cancel all active orders of the account."""
        logger.info("Cancelling all active orders")
        data = self._private_post("/v1/order/cancel/all", {})
        return _parse(CancelAllResult, data, "/v1/order/cancel/all")

    def get_active_orders(self) -> List[Order]:
        """Get all active orders."""
        return _parse_list(Order, self._private_post("/v1/orders", {}), "/v1/orders")

    # Account

    def get_balances(self) -> List[Balance]:
        """Get fund balances."""
        return _parse_list(Balance, self._private_post("/v1/balances", {}), "/v1/balances")

    def get_past_trades(self, market: Market, limit: int = 20) -> List[Trade]:
        """Get the most recent trades of the account on a market."""
        data = self._private_post(
            "/v1/mytrades", {"symbol": market.value, "limit_trades": limit}
        )
        return _parse_list(Trade, data, "/v1/mytrades")

    # Transport

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(TransportError),
        reraise=True,
    )
    def _public_get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a public endpoint. Transport failures are retried."""
        try:
            response = self._http.get(path, params=params)
        except httpx.TransportError as e:
            logger.warning(f"Transport error on GET {path}: {e}")
            raise TransportError(f"Request to {path} failed: {e}", original_error=e)
        return self._handle_response(path, response)

    def _private_post(self, path: str, params: Dict[str, Any]) -> Any:
        """POST a signed request to a private endpoint. Never retried."""
        if not self.has_credentials:
            raise AuthError(ERROR_API_KEY_MISSING, error_code="MISSING_API_KEYS")

        payload = {"request": path, "nonce": self._next_nonce(), **params}
        try:
            response = self._http.post(path, headers=self._sign(payload))
        except httpx.TransportError as e:
            logger.error(f"Transport error on POST {path}: {e}")
            raise TransportError(f"Request to {path} failed: {e}", original_error=e)
        return self._handle_response(path, response)

    def _sign(self, payload: Dict[str, Any]) -> Dict[str, str]:
        """Build the authentication headers for a private request."""
        encoded = base64.b64encode(json.dumps(payload).encode("utf-8"))
        signature = hmac.new(
            self._api_secret.encode("utf-8"), encoded, hashlib.sha384
        ).hexdigest()
        return {
            "Content-Type": "text/plain",
            "Cache-Control": "no-cache",
            "X-GEMINI-APIKEY": self._api_key,
            "X-GEMINI-PAYLOAD": encoded.decode("ascii"),
            "X-GEMINI-SIGNATURE": signature,
        }

    def _next_nonce(self) -> int:
        """Millisecond nonce, strictly increasing for this client."""
        nonce = max(int(time.time() * 1000), self._last_nonce + 1)
        self._last_nonce = nonce
        return nonce

    def _handle_response(self, path: str, response: httpx.Response) -> Any:
        """Decode a response, mapping exchange errors onto typed exceptions."""
        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise TransportError(
                    f"Invalid JSON from {path}", status_code=response.status_code, original_error=e
                )

        reason, message = _error_details(response)
        logger.error(f"Gemini API error on {path}: {response.status_code} {reason}: {message}")

        if response.status_code >= 500:
            raise TransportError(
                f"{reason}: {message}", error_code=reason, status_code=response.status_code
            )
        if response.status_code in (401, 403) or reason in AUTH_REASONS:
            raise AuthError(
                f"{reason}: {message}", error_code=reason, status_code=response.status_code
            )
        if 400 <= response.status_code < 500:
            raise RejectedError(
                f"{reason}: {message}", error_code=reason, status_code=response.status_code
            )
        raise GeminiAPIError(
            f"Unexpected response {response.status_code}", status_code=response.status_code
        )


def _error_details(response: httpx.Response) -> tuple:
    """Extract the exchange ``reason`` and ``message`` from an error body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}", response.text
    if not isinstance(body, dict):
        return f"HTTP {response.status_code}", response.text
    return (
        body.get("reason") or f"HTTP {response.status_code}",
        body.get("message") or response.reason_phrase,
    )


def _order_id(order_id: str) -> Any:
    """Order IDs are sent as integers when numeric."""
    return int(order_id) if order_id.isdigit() else order_id


def _parse(model: Type[ModelT], data: Any, path: str) -> ModelT:
    """Validate a response body, reporting a malformed one as a transport failure."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Malformed response from {path}: {e}")
        raise TransportError(
            f"Malformed response from {path}: {e.error_count()} invalid field(s)",
            error_code="MALFORMED_RESPONSE",
            original_error=e,
        )


def _parse_list(model: Type[ModelT], data: Any, path: str) -> List[ModelT]:
    if not isinstance(data, list):
        raise TransportError(
            f"Malformed response from {path}: expected a list", error_code="MALFORMED_RESPONSE"
        )
    return [_parse(model, item, path) for item in data]
