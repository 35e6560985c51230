"""
Uniswap V3 style adapter: path encoding, single-hop and multi-hop quoters.

Quotes are simulated router swaps (exactInputSingle / exactInput with a zero
minimum output). A single-hop venue with a known pool falls back to pricing
from the pool's slot0 when the router call reverts; multi-hop venues have no
fallback.

V3 paths are encoded as: token0 (20 bytes) | fee0 (3 bytes) | token1 (20 bytes) | ...
"""

import asyncio
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from eth_abi.packed import encode_packed
from web3 import Web3

from ..abi import V3_ROUTER_ABI
from ..exceptions import InvalidPathLength, QuoteUnavailable
from ..interfaces import PoolStateReader, ReadOnlyCaller
from ..pricing import PoolSnapshot, fallback_amount_out, price_1_per_0
from ..types import ContractCall, TradeDirection, VenueDescriptor, VenueKind
from ..utils import get_logger
from .base import QuoteStrategy, VenueQuoter, run_strategies

logger = get_logger(__name__)

ADDRESS_BYTES = 20
FEE_BYTES = 3
MAX_FEE = 2 ** (8 * FEE_BYTES)


def encode_path(tokens: Sequence[str], fees: Sequence[int]) -> bytes:
    """
    Encode a Uniswap V3 swap path.

    Args:
        tokens: Token addresses in swap order (N >= 2)
        fees: Fee tiers in parts-per-million between consecutive tokens (N - 1)

    Returns:
        Packed path: token | fee | token | ... | token

    Raises:
        InvalidPathLength: If len(tokens) != len(fees) + 1 or fewer than 2 tokens
        ValueError: If a fee does not fit in 3 bytes
    """
    if len(tokens) != len(fees) + 1 or len(tokens) < 2:
        raise InvalidPathLength(
            f"Path needs len(tokens) == len(fees) + 1 >= 2, "
            f"got {len(tokens)} tokens and {len(fees)} fees",
            assets=len(tokens),
            fees=len(fees),
        )
    for fee in fees:
        if not 0 <= int(fee) < MAX_FEE:
            raise ValueError(f"Fee tier {fee} does not fit in {FEE_BYTES} bytes")

    types: List[str] = []
    values: List[object] = []
    for i, fee in enumerate(fees):
        types += ["address", "uint24"]
        values += [Web3.to_checksum_address(tokens[i]), int(fee)]
    types.append("address")
    values.append(Web3.to_checksum_address(tokens[-1]))

    return encode_packed(types, values)


def decode_path(path: bytes) -> Tuple[List[str], List[int]]:
    """
    Decode a packed V3 path back into (tokens, fees).

    Raises:
        ValueError: If the byte length is not 20 + 23 * k
    """
    hop = ADDRESS_BYTES + FEE_BYTES
    if len(path) < ADDRESS_BYTES or (len(path) - ADDRESS_BYTES) % hop:
        raise ValueError(f"Invalid V3 path length: {len(path)} bytes")

    tokens: List[str] = []
    fees: List[int] = []
    offset = 0
    while True:
        tokens.append(
            Web3.to_checksum_address(path[offset : offset + ADDRESS_BYTES])
        )
        offset += ADDRESS_BYTES
        if offset == len(path):
            break
        fees.append(int.from_bytes(path[offset : offset + FEE_BYTES], "big"))
        offset += FEE_BYTES

    return tokens, fees


def exact_input_single_call(
    router: str,
    token_in: str,
    token_out: str,
    fee: int,
    recipient: str,
    amount_in: int,
    min_out: int,
    label: str = "exactInputSingle",
) -> ContractCall:
    """Build an exactInputSingle call with no price limit."""
    params = (token_in, token_out, fee, recipient, amount_in, min_out, 0)
    return ContractCall(
        address=router,
        abi=V3_ROUTER_ABI,
        function="exactInputSingle",
        args=(params,),
        label=label,
    )


def exact_input_call(
    router: str,
    path: bytes,
    recipient: str,
    amount_in: int,
    min_out: int,
    label: str = "exactInput",
) -> ContractCall:
    """Build an exactInput (multi-hop) call."""
    params = (path, recipient, amount_in, min_out)
    return ContractCall(
        address=router,
        abi=V3_ROUTER_ABI,
        function="exactInput",
        args=(params,),
        label=label,
    )


class DecimalsResolver:
    """
    Token decimals lookup for fallback pricing.

    Configured assets are known up front; other pool tokens are read once
    from chain and cached for the process lifetime (decimals are immutable).
    """

    def __init__(
        self,
        reader: Optional[PoolStateReader] = None,
        known: Optional[Mapping[str, int]] = None,
    ):
        self.reader = reader
        self._cache: Dict[str, int] = {
            addr.lower(): int(dec) for addr, dec in (known or {}).items()
        }

    async def get(self, asset: str) -> Optional[int]:
        key = asset.lower()
        if key in self._cache:
            return self._cache[key]
        if self.reader is None:
            return None
        try:
            decimals = int(await self.reader.decimals(asset))
        except Exception as e:
            logger.debug(f"decimals() failed for {asset}: {e}")
            return None
        self._cache[key] = decimals
        return decimals


class RouterQuoteStrategy(QuoteStrategy):
    """Simulated exactInputSingle with zero minimum output."""

    source = "router"

    def __init__(
        self, venue: VenueDescriptor, router: str, caller: ReadOnlyCaller, sender: str
    ):
        self.venue = venue
        self.router = router
        self.caller = caller
        self.sender = sender

    async def quote(self, direction: TradeDirection, amount_in: int) -> int:
        call = exact_input_single_call(
            self.router,
            direction.asset_in.address,
            direction.asset_out.address,
            self.venue.fee,
            self.sender,
            amount_in,
            0,
        )
        return int(await self.caller.simulate(call, self.sender))


class PoolPriceStrategy(QuoteStrategy):
    """Spot price from the pool's slot0, used when the router reverts."""

    source = "pool"

    def __init__(
        self,
        venue: VenueDescriptor,
        reader: PoolStateReader,
        decimals: DecimalsResolver,
    ):
        self.venue = venue
        self.reader = reader
        self.decimals = decimals

    def applicable(self) -> bool:
        return self.venue.pool_address is not None

    async def snapshot(self) -> PoolSnapshot:
        pool = self.venue.pool_address
        slot0, token0, token1 = await asyncio.gather(
            self.reader.slot0(pool), self.reader.token0(pool), self.reader.token1(pool)
        )
        dec0, dec1 = await asyncio.gather(
            self.decimals.get(token0), self.decimals.get(token1)
        )
        return PoolSnapshot(
            address=pool,
            token0=token0,
            token1=token1,
            sqrt_price_x96=int(slot0[0]),
            decimals0=dec0,
            decimals1=dec1,
        )

    async def quote(self, direction: TradeDirection, amount_in: int) -> int:
        snapshot = await self.snapshot()
        amount_out = fallback_amount_out(
            snapshot,
            direction.asset_in.address,
            direction.asset_out.address,
            amount_in,
            self.venue.fee,
        )
        price = price_1_per_0(snapshot)
        if snapshot.token0.lower() != direction.asset_in.address.lower():
            price = 1 / price
        logger.debug(
            f"{self.venue.name} pool spot: 1 {direction.asset_in.symbol} = "
            f"{price:.6f} {direction.asset_out.symbol}"
        )
        return amount_out


class V3SingleQuoter(VenueQuoter):
    """
    Quoter for one V3 fee tier between the two assets.

    Tries the router first and, if it reverts and a pool address is
    configured, prices from the pool's slot0.
    """

    kind = VenueKind.V3_SINGLE

    def __init__(
        self,
        venue: VenueDescriptor,
        router: str,
        caller: ReadOnlyCaller,
        sender: str,
        pool_reader: Optional[PoolStateReader] = None,
        decimals: Optional[DecimalsResolver] = None,
    ):
        super().__init__(venue, spender=router)
        if venue.fee is None:
            raise ValueError(f"V3 venue {venue.name} has no fee tier")
        self.router = router
        self.strategies: List[QuoteStrategy] = [
            RouterQuoteStrategy(venue, router, caller, sender)
        ]
        if pool_reader is not None:
            self.strategies.append(
                PoolPriceStrategy(
                    venue, pool_reader, decimals or DecimalsResolver(pool_reader)
                )
            )

    async def quote(self, direction: TradeDirection, amount_in: int):
        return await run_strategies(self.venue, self.strategies, direction, amount_in)

    def swap_call(
        self,
        direction: TradeDirection,
        amount_in: int,
        min_out: int,
        recipient: str,
        deadline: int,
    ) -> ContractCall:
        return exact_input_single_call(
            self.router,
            direction.asset_in.address,
            direction.asset_out.address,
            self.venue.fee,
            recipient,
            amount_in,
            min_out,
            label=f"{self.name} swap {direction.label}",
        )


class V3MultiQuoter(VenueQuoter):
    """
    Quoter for a multi-hop V3 path through intermediate assets.

    Paths for both directions are encoded up front, so a malformed venue fails
    at startup. The reverse path walks the same pools backwards. No fallback
    exists: when the router is unreachable the venue is simply unavailable.
    """

    kind = VenueKind.V3_MULTI

    def __init__(
        self,
        venue: VenueDescriptor,
        router: str,
        caller: ReadOnlyCaller,
        sender: str,
        asset_a: str,
        asset_b: str,
    ):
        super().__init__(venue, spender=router)
        self.router = router
        self.caller = caller
        self.sender = sender

        forward = [asset_a, *venue.intermediates, asset_b]
        fees = list(venue.fees)
        self._paths: Dict[Tuple[str, str], bytes] = {
            (asset_a.lower(), asset_b.lower()): encode_path(forward, fees),
            (asset_b.lower(), asset_a.lower()): encode_path(forward[::-1], fees[::-1]),
        }

    def path_for(self, direction: TradeDirection) -> bytes:
        key = (direction.asset_in.address.lower(), direction.asset_out.address.lower())
        try:
            return self._paths[key]
        except KeyError:
            raise QuoteUnavailable(
                f"{self.name} has no path for {direction.label}", venue=self.name
            ) from None

    async def quote(self, direction: TradeDirection, amount_in: int):
        call = exact_input_call(
            self.router, self.path_for(direction), self.sender, amount_in, 0
        )
        try:
            amount_out = await self.caller.simulate(call, self.sender)
        except Exception as e:
            raise QuoteUnavailable(
                f"{self.name} exactInput failed for {direction.label}: {e}",
                venue=self.name,
            ) from e
        return int(amount_out), "router"

    def swap_call(
        self,
        direction: TradeDirection,
        amount_in: int,
        min_out: int,
        recipient: str,
        deadline: int,
    ) -> ContractCall:
        return exact_input_call(
            self.router,
            self.path_for(direction),
            recipient,
            amount_in,
            min_out,
            label=f"{self.name} swap {direction.label}",
        )
