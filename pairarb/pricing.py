"""
Fallback pricing from a V3 pool's raw price state.

Used only when the router's own quoting call reverts, so nothing here
depends on the router. All amount arithmetic is done in Python ints; the
human price is derived for display only.

Price math:
    price1per0 (smallest units) = sqrtPriceX96^2 / 2^192
    price1per0 (human units)    = sqrtPriceX96^2 / 2^192 * 10^dec0 / 10^dec1
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .exceptions import MissingDecimals, PoolMismatch

Q96 = 2**96
Q192 = 2**192
FEE_DENOMINATOR = 1_000_000


@dataclass(frozen=True)
class PoolSnapshot:
    """
    Raw state of a V3 pool needed for fallback pricing.

    Attributes:
        address: Pool address
        token0: Address of token0
        token1: Address of token1
        sqrt_price_x96: slot0 square-root price, Q64.96 fixed point
        decimals0: Decimal precision of token0, None if unknown
        decimals1: Decimal precision of token1, None if unknown
    """

    address: str
    token0: str
    token1: str
    sqrt_price_x96: int
    decimals0: Optional[int] = None
    decimals1: Optional[int] = None


def _require_decimals(snapshot: PoolSnapshot) -> None:
    missing = [
        token
        for token, dec in (
            (snapshot.token0, snapshot.decimals0),
            (snapshot.token1, snapshot.decimals1),
        )
        if dec is None
    ]
    if missing:
        raise MissingDecimals(
            f"Unknown decimals for {', '.join(missing)} in pool {snapshot.address}",
            assets=missing,
        )


def price_1_per_0(snapshot: PoolSnapshot) -> Decimal:
    """
    Human-unit price of token0 expressed in token1.

    Raises:
        MissingDecimals: If either token's precision is unknown
    """
    _require_decimals(snapshot)
    num = snapshot.sqrt_price_x96 * snapshot.sqrt_price_x96 * 10**snapshot.decimals0
    den = Q192 * 10**snapshot.decimals1
    return Decimal(num) / Decimal(den)


def deduct_fee(amount_in: int, fee_ppm: int) -> int:
    """Remove a parts-per-million fee from an input amount (integer division)."""
    if not 0 <= fee_ppm < FEE_DENOMINATOR:
        raise ValueError(f"Fee must be in [0, {FEE_DENOMINATOR}) ppm: {fee_ppm}")
    return amount_in * (FEE_DENOMINATOR - fee_ppm) // FEE_DENOMINATOR


def fallback_amount_out(
    snapshot: PoolSnapshot,
    token_in: str,
    token_out: str,
    amount_in: int,
    fee_ppm: int,
) -> int:
    """
    Expected output of swapping amount_in through the pool at its spot price.

    The fee tier is deducted from the input first. token0 -> token1
    multiplies by the smallest-unit price, token1 -> token0 divides by it.
    Price impact is ignored; this is a spot estimate.

    Args:
        snapshot: Pool state (slot0 price, tokens, decimals)
        token_in: Address of the asset sold
        token_out: Address of the asset bought
        amount_in: Input in smallest units of token_in
        fee_ppm: Pool fee tier in parts-per-million (e.g., 500)

    Returns:
        Output in smallest units of token_out

    Raises:
        PoolMismatch: If (token_in, token_out) is not the pool's pair
        MissingDecimals: If either token's precision is unknown
    """
    t_in, t_out = token_in.lower(), token_out.lower()
    t0, t1 = snapshot.token0.lower(), snapshot.token1.lower()

    if (t_in, t_out) == (t0, t1):
        zero_for_one = True
    elif (t_in, t_out) == (t1, t0):
        zero_for_one = False
    else:
        raise PoolMismatch(
            f"Pool {snapshot.address} does not trade {token_in} -> {token_out}",
            pool=snapshot.address,
            token_in=token_in,
            token_out=token_out,
        )

    _require_decimals(snapshot)

    if snapshot.sqrt_price_x96 <= 0:
        raise ValueError(f"Pool {snapshot.address} has no price (sqrtPriceX96=0)")

    amount_after_fee = deduct_fee(amount_in, fee_ppm)
    sqrt_sq = snapshot.sqrt_price_x96 * snapshot.sqrt_price_x96

    if zero_for_one:
        return amount_after_fee * sqrt_sq // Q192
    return amount_after_fee * Q192 // sqrt_sq

