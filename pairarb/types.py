"""
Core data types for the pair arbitrage bot.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Sequence, Tuple, Union

from .utils import fmt_fee, to_raw, to_units


class VenueKind(str, Enum):
    """Type of liquidity venue."""

    V2 = "v2"
    V3_SINGLE = "v3"
    V3_MULTI = "v3_path"


@dataclass(frozen=True)
class Asset:
    """
    An ERC-20 asset.

    Attributes:
        symbol: Display symbol (e.g., "USDC")
        address: Checksum address of the token contract
        decimals: Decimal precision (e.g., 6 or 18)
    """

    symbol: str
    address: str
    decimals: int

    def to_raw(self, human: Union[Decimal, int, str]) -> int:
        return to_raw(human, self.decimals)

    def to_units(self, raw: int) -> Decimal:
        return to_units(raw, self.decimals)


@dataclass(frozen=True)
class VenueDescriptor:
    """
    Describes one venue offering a rate between the two assets.

    Attributes:
        name: Display name (e.g., "V3 0.05%")
        kind: Venue kind, selects the quoter variant
        fee: Fee tier in parts-per-million (V2 and V3 single-hop)
        pool_address: Pool used for fallback pricing (V3 single-hop only)
        fees: Ordered fee tiers along the path (V3 multi-hop only)
        intermediates: Intermediate asset addresses (V3 multi-hop only)
    """

    name: str
    kind: VenueKind
    fee: Optional[int] = None
    pool_address: Optional[str] = None
    fees: Tuple[int, ...] = ()
    intermediates: Tuple[str, ...] = ()

    @property
    def total_fee_ppm(self) -> int:
        """Sum of the fee tiers charged along this venue."""
        if self.kind == VenueKind.V3_MULTI:
            return sum(self.fees)
        return self.fee or 0

    @classmethod
    def v2(cls, name: str = "V2", fee: int = 3000, hops: Sequence[str] = ()):
        return cls(name=name, kind=VenueKind.V2, fee=fee, intermediates=tuple(hops))

    @classmethod
    def v3_single(cls, fee: int, pool_address: Optional[str] = None, name: str = ""):
        return cls(
            name=name or f"V3 {fmt_fee(fee)}",
            kind=VenueKind.V3_SINGLE,
            fee=fee,
            pool_address=pool_address,
        )

    @classmethod
    def v3_multi(cls, fees: Sequence[int], intermediates: Sequence[str], name: str = ""):
        return cls(
            name=name or "V3 path " + "+".join(fmt_fee(f) for f in fees),
            kind=VenueKind.V3_MULTI,
            fees=tuple(fees),
            intermediates=tuple(intermediates),
        )


@dataclass(frozen=True)
class TradeDirection:
    """
    One of the two trade directions with its own size and threshold.

    Attributes:
        asset_in: Asset sold
        asset_out: Asset bought
        trade_size: Input size in human units of asset_in
        profit_threshold: Minimum profit in human units of asset_out
    """

    asset_in: Asset
    asset_out: Asset
    trade_size: Decimal
    profit_threshold: Decimal

    @property
    def amount_in(self) -> int:
        """Exact trade size in smallest units of asset_in."""
        return self.asset_in.to_raw(self.trade_size)

    @property
    def label(self) -> str:
        return f"{self.asset_in.symbol}→{self.asset_out.symbol}"


@dataclass(frozen=True)
class Quote:
    """
    A venue's output amount for one direction, obtained without a transaction.

    Attributes:
        venue: Venue that produced the quote
        amount_out: Output in smallest units of the output asset
        amount_out_human: Output in human units (display and thresholds only)
        source: "router" for a simulated router call, "pool" for fallback pricing
    """

    venue: VenueDescriptor
    amount_out: int
    amount_out_human: Decimal
    source: str = "router"

    ok = True


@dataclass(frozen=True)
class VenueFailure:
    """A venue that could not quote this cycle."""

    venue: VenueDescriptor
    error: BaseException

    ok = False


QuoteResult = Union[Quote, VenueFailure]


@dataclass(frozen=True)
class ContractCall:
    """
    A contract call, independent of the transport that runs it.

    The same descriptor is simulated for quotes and pre-flight checks and
    submitted as a transaction for swaps.

    Attributes:
        address: Contract address
        abi: Contract ABI (only the entries the call needs)
        function: Function name
        args: Positional arguments; structs are passed as tuples
        label: Short description for logs
    """

    address: str
    abi: Sequence[Any]
    function: str
    args: Tuple[Any, ...] = ()
    label: str = ""


@dataclass(frozen=True)
class Receipt:
    """Confirmation record of a mined transaction."""

    success: bool
    tx_hash: str
    block_number: Optional[int] = None


@dataclass
class ExecutionResult:
    """
    Result of the execute phase of one cycle.

    Attributes:
        success: Whether the swap was confirmed successfully
        direction: Direction traded
        venue: Venue the swap went through
        amount_in: Input in smallest units
        expected_out: Quoted output in smallest units
        min_out: Slippage-bounded minimum output enforced on-chain
        tx_hash: Swap transaction hash
        approval_tx_hash: Allowance transaction hash, if one was sent
    """

    success: bool
    direction: TradeDirection
    venue: VenueDescriptor
    amount_in: int
    expected_out: int
    min_out: int
    tx_hash: Optional[str] = None
    approval_tx_hash: Optional[str] = None
