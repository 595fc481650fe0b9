"""
Shared utilities for the Gemini command-line client.

This module provides logging setup, log redaction and the Decimal helpers
used for order sizing.
"""

import logging
import logging.handlers
import re
import sys
from decimal import ROUND_FLOOR, Decimal
from pathlib import Path
from typing import Optional, Union

from pythonjsonlogger.json import JsonFormatter

from .config import Config

BPS_DENOMINATOR = Decimal("10000")


class SecurityFilter(logging.Filter):
    """Filter to remove sensitive information from logs"""

    PATTERNS = [
        (
            re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([A-Za-z0-9\-_]{6,})', re.IGNORECASE),
            r'\1***MASKED***',
        ),
        (
            re.compile(r'(secret["\']?\s*[:=]\s*["\']?)([A-Za-z0-9\-_]{6,})', re.IGNORECASE),
            r'\1***MASKED***',
        ),
        (
            re.compile(r'(X-GEMINI-(?:APIKEY|SIGNATURE|PAYLOAD)["\']?\s*[:=]\s*["\']?)([A-Za-z0-9+/=\-_]{6,})', re.IGNORECASE),
            r'\1***MASKED***',
        ),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter sensitive information"""
        if isinstance(record.msg, str):
            record.msg = self._mask_sensitive_data(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self._mask_sensitive_data(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True

    def _mask_sensitive_data(self, text: str) -> str:
        """Mask sensitive data in text"""
        result = text
        for pattern, replacement in self.PATTERNS:
            result = pattern.sub(replacement, result)
        return result


def setup_logging(
    config: Config, service_name: Optional[str] = None, level: Optional[str] = None
) -> logging.Logger:
    """
    Setup logging configuration for the client.

    Console output goes to stderr so that command output on stdout stays
    machine-readable.

    Args:
        config: Configuration object
        service_name: Name of the logger to configure
        level: Overrides the configured log level

    Returns:
        Configured logger instance
    """
    log_config = config.logging
    log_level = getattr(logging, (level or log_config.level).upper())
    formatter = logging.Formatter(log_config.format)

    logger_name = service_name or config.service_name
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    # Clear existing handlers
    logger.handlers.clear()

    if log_config.enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(SecurityFilter())
        logger.addHandler(console_handler)

    # File handler with rotation
    if log_config.enable_file:
        log_dir = Path(log_config.file_path).parent
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_config.file_path,
            maxBytes=log_config.max_file_size,
            backupCount=log_config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        if log_config.json_file:
            file_handler.setFormatter(
                JsonFormatter(
                    "%(asctime)s %(name)s %(levelname)s %(message)s",
                    rename_fields={"levelname": "level", "asctime": "timestamp"},
                )
            )
        else:
            file_handler.setFormatter(formatter)
        file_handler.addFilter(SecurityFilter())
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance by name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Union[Decimal, float, int, str], decimals: int) -> Decimal:
    """
    Round to ``decimals`` fractional digits, halves going up.

    Computed as ``floor(value * 10^decimals + 0.5) / 10^decimals``.

    Args:
        value: Value to round
        decimals: Number of fractional digits

    Returns:
        Rounded value
    """
    scaled = to_decimal(value).scaleb(decimals) + Decimal("0.5")
    return scaled.to_integral_value(rounding=ROUND_FLOOR).scaleb(-decimals)


def fee_ratio(bps: int) -> Decimal:
    """Convert basis points to a fraction (25 -> 0.0025)."""
    return Decimal(bps) / BPS_DENOMINATOR


def format_amount(value: Decimal, places: int = 8) -> str:
    """Format a quantity with a fixed number of fractional digits."""
    return f"{value:.{places}f}"
