"""
Exception hierarchy for the pair arbitrage bot.

Venue-level errors (QuoteError subclasses) are isolated per quoter and never
abort a scan. Execution-level errors end the current cycle only.
"""

from typing import Any, Dict, Optional, Sequence


class PairArbError(Exception):
    """Base exception for all pair arbitrage related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigError(PairArbError):
    """Raised when config is invalid or missing required fields."""

    pass


class QuoteError(PairArbError):
    """Raised when a single venue cannot produce a quote."""

    def __init__(
        self,
        message: str,
        venue: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.venue = venue


class QuoteUnavailable(QuoteError):
    """Raised when every quoting method of a venue failed this cycle."""

    pass


class PoolMismatch(QuoteError):
    """Raised when the requested asset pair is not the pool's pair."""

    def __init__(
        self,
        message: str,
        pool: Optional[str] = None,
        token_in: Optional[str] = None,
        token_out: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.pool = pool
        self.token_in = token_in
        self.token_out = token_out


class MissingDecimals(QuoteError):
    """Raised when decimal precision of a pool asset is unknown."""

    def __init__(
        self,
        message: str,
        assets: Sequence[str] = (),
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.assets = tuple(assets)


class InvalidPathLength(PairArbError):
    """Raised when a multi-hop path has len(assets) != len(fees) + 1."""

    def __init__(
        self,
        message: str,
        assets: int = 0,
        fees: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.assets = assets
        self.fees = fees


class ExecutionError(PairArbError):
    """Raised when the execute phase of a cycle fails."""

    def __init__(
        self,
        message: str,
        venue: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.venue = venue
        self.tx_hash = tx_hash


class ApprovalFailed(ExecutionError):
    """Raised when the allowance transaction was mined with a failed status."""

    pass


class SwapFailed(ExecutionError):
    """Raised when the swap transaction was mined with a failed status."""

    pass


class PreflightReverted(SwapFailed):
    """Raised when the read-only swap simulation reverts before submission."""

    pass
