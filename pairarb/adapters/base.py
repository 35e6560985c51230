"""
Venue quoter interface shared by the V2 and V3 adapters.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

from ..exceptions import QuoteUnavailable
from ..types import ContractCall, TradeDirection, VenueDescriptor, VenueKind
from ..utils import get_logger

logger = get_logger(__name__)


class VenueQuoter(ABC):
    """
    One venue's quoting and swap-building capability.

    quote() must never mutate chain state: it runs simulated (read-only)
    calls only. swap_call() builds the state-changing call that the
    execution engine simulates and then submits.

    Attributes:
        venue: Descriptor of the venue
        spender: Router address that must hold an allowance for swaps
    """

    kind: VenueKind

    def __init__(self, venue: VenueDescriptor, spender: str):
        if venue.kind != self.kind:
            raise ValueError(
                f"{type(self).__name__} cannot quote {venue.kind.value} venue {venue.name}"
            )
        self.venue = venue
        self.spender = spender

    @property
    def name(self) -> str:
        return self.venue.name

    @abstractmethod
    async def quote(self, direction: TradeDirection, amount_in: int) -> Tuple[int, str]:
        """
        Quote amount_in of direction.asset_in.

        Returns:
            Tuple of (amount_out in smallest units, source) where source is
            "router" or "pool"

        Raises:
            QuoteError: If the venue cannot quote this cycle
        """

    @abstractmethod
    def swap_call(
        self,
        direction: TradeDirection,
        amount_in: int,
        min_out: int,
        recipient: str,
        deadline: int,
    ) -> ContractCall:
        """Build the swap call enforcing min_out on-chain."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.venue.name}>"


class QuoteStrategy(ABC):
    """One way of pricing a V3 single-hop venue."""

    source: str = "router"

    def applicable(self) -> bool:
        """Whether the strategy's preconditions hold (e.g. a pool is known)."""
        return True

    @abstractmethod
    async def quote(self, direction: TradeDirection, amount_in: int) -> int:
        """Return the output amount or raise a QuoteError."""


async def run_strategies(
    venue: VenueDescriptor,
    strategies: Sequence[QuoteStrategy],
    direction: TradeDirection,
    amount_in: int,
) -> Tuple[int, str]:
    """
    Try strategies in order until one produces a quote.

    A strategy whose preconditions do not hold is skipped. When every
    applicable strategy fails the venue is unavailable this cycle.

    Returns:
        Tuple of (amount_out, source)

    Raises:
        QuoteUnavailable: If no strategy produced a quote
    """
    failures = []
    for strategy in strategies:
        if not strategy.applicable():
            continue
        try:
            return await strategy.quote(direction, amount_in), strategy.source
        except Exception as e:
            failures.append(f"{strategy.source}: {e}")
            logger.debug(f"{venue.name} {direction.label} {strategy.source} quote failed: {e}")

    if not failures:
        reason = "no applicable quote method"
    else:
        reason = "; ".join(failures)
    raise QuoteUnavailable(
        f"{venue.name} unavailable for {direction.label} ({reason})",
        venue=venue.name,
        details={"failures": failures},
    )
