"""
Common helpers: loggers, smallest-unit conversions and log formatting.
"""

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Any, Dict, Optional, Union


# Logging utilities
def get_logger(
    name: str, level: Optional[Union[str, int]] = None
) -> logging.Logger:
    """
    Get a module logger.

    Handlers and format are configured once by pairarb.logging_config.setup();
    module loggers only carry a name and, optionally, their own level.

    Args:
        name: Logger name (typically __name__)
        level: Optional level override for this logger

    Returns:
        Named logger
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


# Unit conversion
def to_units(raw: int, decimals: int) -> Decimal:
    """Convert a smallest-unit integer into human units."""
    return Decimal(raw) / (Decimal(10) ** decimals)


def to_raw(human: Union[Decimal, int, str], decimals: int) -> int:
    """Convert a human amount into smallest units, truncating extra digits."""
    value = Decimal(str(human)) * (Decimal(10) ** decimals)
    return int(value.to_integral_value(rounding=ROUND_DOWN))


def apply_bps_discount(amount: int, bps: int) -> int:
    """Return amount * (10000 - bps) // 10000 in exact integer arithmetic."""
    if not 0 <= bps < 10_000:
        raise ValueError(f"bps must be in [0, 10000): {bps}")
    return amount * (10_000 - bps) // 10_000


# Formatting
def fmt_amount(value: Union[Decimal, int, float], places: int = 6) -> str:
    """Format an amount with a fixed number of decimals for log lines."""
    if isinstance(value, int):
        return str(value)
    return f"{Decimal(str(value)):.{places}f}"


def fmt_fee(fee_ppm: int) -> str:
    """Format a fee tier in parts-per-million as a percentage (500 -> 0.05%)."""
    pct = Decimal(fee_ppm) / Decimal(10_000)
    return f"{pct.normalize():f}%"


# Dictionary utilities
def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        update: Dictionary to merge into base

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result
