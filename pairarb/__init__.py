"""
Two-asset on-chain arbitrage bot.

Quotes every configured venue in both directions, picks the most profitable
direction that clears its threshold and executes it with a slippage-bounded
swap.
"""

__version__ = "0.1.0"
