"""
Uniswap V2 style adapter for constant-product routers.

Quotes come from the router's read-only getAmountsOut; swaps go through
swapExactTokensForTokens with a deadline.
"""

from typing import List, Sequence

from ..abi import V2_ROUTER_ABI
from ..exceptions import QuoteUnavailable
from ..interfaces import ReadOnlyCaller
from ..types import ContractCall, TradeDirection, VenueDescriptor, VenueKind
from .base import VenueQuoter


def amounts_out_call(router: str, amount_in: int, path: Sequence[str]) -> ContractCall:
    """Build a getAmountsOut(amountIn, path) call."""
    return ContractCall(
        address=router,
        abi=V2_ROUTER_ABI,
        function="getAmountsOut",
        args=(amount_in, list(path)),
        label="getAmountsOut",
    )


class V2Quoter(VenueQuoter):
    """
    Quoter for a V2 router.

    The path is [asset_in, asset_out], or [asset_in, *hops, asset_out] when the
    venue descriptor lists intermediate assets. The quoted output is the last
    element of the returned amounts.
    """

    kind = VenueKind.V2

    def __init__(
        self,
        venue: VenueDescriptor,
        router: str,
        caller: ReadOnlyCaller,
        sender: str,
    ):
        super().__init__(venue, spender=router)
        self.router = router
        self.caller = caller
        self.sender = sender

    def path_for(self, direction: TradeDirection) -> List[str]:
        return [
            direction.asset_in.address,
            *self.venue.intermediates,
            direction.asset_out.address,
        ]

    async def quote(self, direction: TradeDirection, amount_in: int):
        call = amounts_out_call(self.router, amount_in, self.path_for(direction))
        try:
            amounts = await self.caller.simulate(call, self.sender)
        except Exception as e:
            raise QuoteUnavailable(
                f"{self.name} getAmountsOut failed for {direction.label}: {e}",
                venue=self.name,
            ) from e

        if not amounts:
            raise QuoteUnavailable(
                f"{self.name} returned no amounts for {direction.label}",
                venue=self.name,
            )
        return int(amounts[-1]), "router"

    def swap_call(
        self,
        direction: TradeDirection,
        amount_in: int,
        min_out: int,
        recipient: str,
        deadline: int,
    ) -> ContractCall:
        return ContractCall(
            address=self.router,
            abi=V2_ROUTER_ABI,
            function="swapExactTokensForTokens",
            args=(amount_in, min_out, self.path_for(direction), recipient, deadline),
            label=f"{self.name} swap {direction.label}",
        )
