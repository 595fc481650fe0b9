"""
Gemini exchange command-line client.

This package provides the exchange client, the order execution engine that
emulates market orders by sweeping the top of the book, and the command-line
interface built on top of them.
"""

from .client import GeminiClient
from .config import Config, ExecutionConfig, GeminiConfig, get_config
from .exceptions import (
    AuthError,
    ExecutionError,
    GeminiAPIError,
    GeminiCLIError,
    InvalidInputError,
    MaxRetriesExceededError,
    NoLiquidityError,
    RejectedError,
    TransportError,
)
from .execution_engine import ExecutionEngine, SweepResult, fee_adjusted_target
from .models import BookEntry, ExecutionRequest, Market, Order, OrderOption, OrderSide
from .utils import get_logger, round_half_up, setup_logging

__version__ = "1.0.0"

__all__ = [
    "GeminiClient",
    "Config",
    "ExecutionConfig",
    "GeminiConfig",
    "get_config",
    "ExecutionEngine",
    "SweepResult",
    "fee_adjusted_target",
    "BookEntry",
    "ExecutionRequest",
    "Market",
    "Order",
    "OrderOption",
    "OrderSide",
    "GeminiCLIError",
    "InvalidInputError",
    "NoLiquidityError",
    "GeminiAPIError",
    "TransportError",
    "RejectedError",
    "AuthError",
    "ExecutionError",
    "MaxRetriesExceededError",
    "setup_logging",
    "get_logger",
    "round_half_up",
]
