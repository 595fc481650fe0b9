"""
Exception hierarchy for the Gemini command-line client.

Every failure raised by the exchange client or the execution engine is one
of these types. Nothing below the CLI layer terminates the process; the CLI
turns these into an error message and a non-zero exit status.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .models import Order


ERROR_API_KEY_MISSING = (
    "Missing API keys. Set GEMINI_API_SANDBOX_KEY and GEMINI_API_SANDBOX_SECRET "
    "in the environment, or GEMINI_API_KEY and GEMINI_API_SECRET for live mode"
)
ERROR_AMBIGUOUS_AMOUNT = "Ambiguous use of both amt and base-amt flags"
ERROR_INVALID_AMOUNT = "Amount or Child Amount must be above 0"
ERROR_INVALID_PRICE = "Price must be above 0"
ERROR_INVALID_BPS = "Fee basis points must be between 0 and 9999"
ERROR_MAX_RETRIES = "Max retries"
ERROR_NO_ASKS = "No asks in book"
ERROR_NO_BIDS = "No bids in book"


class GeminiCLIError(Exception):
    """Base exception for client and execution errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        # Fills already executed when a sweep aborts
        self.partial_fills: List["Order"] = []
        super().__init__(self.message)


class InvalidInputError(GeminiCLIError):
    """Request rejected before any network call."""


class NoLiquidityError(GeminiCLIError):
    """The side of the book an order would take is empty."""


class GeminiAPIError(GeminiCLIError):
    """Custom exception for Gemini API errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, error_code=error_code)
        self.status_code = status_code
        self.original_error = original_error


class TransportError(GeminiAPIError):
    """Network failure, timeout or exchange-side 5xx."""


class RejectedError(GeminiAPIError):
    """The exchange refused the request."""


class AuthError(GeminiAPIError):
    """Missing or invalid API credentials."""


class ExecutionError(GeminiCLIError):
    """A sweep finished without satisfying its target."""


class MaxRetriesExceededError(ExecutionError):
    """The sweep hit its iteration ceiling."""

    def __init__(self, retries: int, accumulated: Any, target: Any):
        super().__init__(
            ERROR_MAX_RETRIES,
            error_code="MAX_RETRIES",
            context={
                "retries": retries,
                "accumulated": str(accumulated),
                "target": str(target),
            },
        )
        self.retries = retries
