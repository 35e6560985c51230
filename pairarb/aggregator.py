"""
Quote aggregation across all configured venues.

Every venue is quoted concurrently for a direction. A venue that fails is
converted into a VenueFailure at this boundary and dropped; the scan goes
on with whatever quotes survived.
"""

import asyncio
from typing import List, Optional, Sequence, Tuple

from .adapters import (
    DecimalsResolver,
    V2Quoter,
    V3MultiQuoter,
    V3SingleQuoter,
    VenueQuoter,
)
from .config import BotConfig
from .interfaces import PoolStateReader, ReadOnlyCaller
from .types import Quote, QuoteResult, TradeDirection, VenueDescriptor, VenueFailure
from .utils import get_logger

logger = get_logger(__name__)


def build_quoters(
    config: BotConfig,
    caller: ReadOnlyCaller,
    pool_reader: Optional[PoolStateReader],
    decimals: Optional[DecimalsResolver],
    recipient: str,
    bridge: Optional[str] = None,
) -> List[VenueQuoter]:
    """
    Build the venue set in display order.

    V3 fee-tier pools first, then the V2 router (if configured), then one
    multi-hop venue per fee combination through the bridge asset (only when
    a bridge asset is known).

    Raises:
        InvalidPathLength: If a multi-hop venue is malformed
    """
    quoters: List[VenueQuoter] = []

    for pool in config.v3_pools:
        quoters.append(
            V3SingleQuoter(
                pool.to_venue(),
                config.v3_router,
                caller,
                recipient,
                pool_reader=pool_reader,
                decimals=decimals,
            )
        )

    if config.v2_router:
        quoters.append(
            V2Quoter(
                VenueDescriptor.v2(fee=config.v2_fee), config.v2_router, caller, recipient
            )
        )

    if bridge:
        for fees in config.multi_hop_fees:
            quoters.append(
                V3MultiQuoter(
                    VenueDescriptor.v3_multi(fees, [bridge]),
                    config.v3_router,
                    caller,
                    recipient,
                    config.asset_a.address,
                    config.asset_b.address,
                )
            )

    logger.debug(f"Venues: {', '.join(q.name for q in quoters)}")
    return quoters


class QuoteAggregator:
    """
    Fan-out quoting over a fixed, ordered venue set.

    Attributes:
        quoters: Venue quoters in venue order (used for tie-breaks)
    """

    def __init__(self, quoters: Sequence[VenueQuoter]):
        self.quoters = list(quoters)

    def quoter_for(self, venue: VenueDescriptor) -> VenueQuoter:
        for quoter in self.quoters:
            if quoter.venue == venue:
                return quoter
        raise KeyError(f"No quoter for venue {venue.name}")

    async def quote_all(self, direction: TradeDirection) -> List[QuoteResult]:
        """
        Quote every venue for one direction concurrently.

        Returns:
            One Quote or VenueFailure per venue, in venue order
        """
        amount_in = direction.amount_in
        outcomes = await asyncio.gather(
            *[q.quote(direction, amount_in) for q in self.quoters],
            return_exceptions=True,
        )

        results: List[QuoteResult] = []
        for quoter, outcome in zip(self.quoters, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    # CancelledError and friends are not venue failures
                    raise outcome
                logger.debug(f"{quoter.name} {direction.label} failed: {outcome}")
                results.append(VenueFailure(venue=quoter.venue, error=outcome))
                continue

            amount_out, source = outcome
            results.append(
                Quote(
                    venue=quoter.venue,
                    amount_out=amount_out,
                    amount_out_human=direction.asset_out.to_units(amount_out),
                    source=source,
                )
            )
        return results

    async def collect(self, direction: TradeDirection) -> List[Quote]:
        """Return the surviving quotes for a direction, in venue order."""
        return [r for r in await self.quote_all(direction) if r.ok]

    async def collect_both(
        self, directions: Sequence[TradeDirection]
    ) -> Tuple[List[Quote], ...]:
        """Collect quotes for several directions concurrently."""
        return tuple(await asyncio.gather(*[self.collect(d) for d in directions]))
