"""
Venue adapters for different AMM types.
"""

from .base import QuoteStrategy, VenueQuoter, run_strategies
from .v2 import V2Quoter
from .v3 import (
    DecimalsResolver,
    PoolPriceStrategy,
    RouterQuoteStrategy,
    V3MultiQuoter,
    V3SingleQuoter,
    decode_path,
    encode_path,
)

__all__ = [
    "DecimalsResolver",
    "PoolPriceStrategy",
    "QuoteStrategy",
    "RouterQuoteStrategy",
    "V2Quoter",
    "V3MultiQuoter",
    "V3SingleQuoter",
    "VenueQuoter",
    "decode_path",
    "encode_path",
    "run_strategies",
]
