"""
Execution engine: allowance, pre-flight simulation, swap submission.

Handles, strictly in sequence:
- Minimum output from the winning quote and the slippage tolerance
- Unlimited approval of the router when the allowance is short
- Read-only simulation of the exact swap call with the real minimum output
- Submission and confirmation of the swap
"""

import time
from typing import Callable, Optional

from .adapters import VenueQuoter
from .constants import MAX_UINT256
from .exceptions import ApprovalFailed, PreflightReverted, SwapFailed
from .interfaces import ReadOnlyCaller, Signer
from .types import ExecutionResult, Quote, TradeDirection
from .utils import apply_bps_discount, get_logger

logger = get_logger(__name__)


class ExecutionEngine:
    """
    Executes the chosen direction through its winning venue.

    At most one approval and exactly one swap are sent per execute() call,
    each awaited to confirmation before the next step. Nothing is retried.
    """

    def __init__(
        self,
        signer: Signer,
        caller: ReadOnlyCaller,
        slippage_bps: int = 150,
        deadline_sec: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize executor.

        Args:
            signer: Account that approves and swaps
            caller: Read-only caller for the pre-flight simulation
            slippage_bps: Tolerance applied to the quoted output (150 = 1.5%)
            deadline_sec: Seconds until a V2 swap expires
            clock: Wall clock in seconds, used for V2 deadlines
        """
        if not 0 <= slippage_bps < 10_000:
            raise ValueError(f"slippage_bps must be in [0, 10000): {slippage_bps}")
        self.signer = signer
        self.caller = caller
        self.slippage_bps = slippage_bps
        self.deadline_sec = deadline_sec
        self.clock = clock

    def min_out(self, amount_out: int) -> int:
        return apply_bps_discount(amount_out, self.slippage_bps)

    def deadline(self) -> int:
        return int(self.clock()) + self.deadline_sec

    async def ensure_allowance(
        self, direction: TradeDirection, spender: str, venue: str
    ) -> Optional[str]:
        """
        Approve spender for an unlimited amount if the allowance is short.

        Returns:
            Approval tx hash, or None if the allowance already covered the trade

        Raises:
            ApprovalFailed: If the approval was mined with a failed status
        """
        asset = direction.asset_in
        current = await self.signer.allowance(asset.address, spender)
        if current >= direction.amount_in:
            logger.debug(f"Allowance OK for {asset.symbol} -> {spender}")
            return None

        logger.info(f"Approving {asset.symbol} -> {spender}...")
        handle = await self.signer.approve(asset.address, spender, MAX_UINT256)
        receipt = await handle.wait()
        if not receipt.success:
            raise ApprovalFailed(
                f"Approval of {asset.symbol} for {spender} failed",
                venue=venue,
                tx_hash=receipt.tx_hash,
            )
        logger.info(f"✓ Approve OK ({receipt.tx_hash})")
        return receipt.tx_hash

    async def execute(
        self, direction: TradeDirection, quote: Quote, quoter: VenueQuoter
    ) -> ExecutionResult:
        """
        Execute one swap for the winning quote.

        Args:
            direction: Direction to trade
            quote: Winning quote for that direction
            quoter: Quoter of the winning venue (builds the swap call)

        Returns:
            ExecutionResult with success=True and the swap hash

        Raises:
            ApprovalFailed: If the approval failed
            PreflightReverted: If the simulated swap reverts
            SwapFailed: If the swap was mined with a failed status
        """
        amount_in = direction.amount_in
        min_out = self.min_out(quote.amount_out)
        venue = quote.venue.name

        logger.debug(
            f"Executing {direction.label} via {venue}: in={amount_in} "
            f"expected={quote.amount_out} min_out={min_out}"
        )

        approval_tx = await self.ensure_allowance(direction, quoter.spender, venue)

        call = quoter.swap_call(
            direction, amount_in, min_out, self.signer.address, self.deadline()
        )

        try:
            await self.caller.simulate(call, self.signer.address)
        except Exception as e:
            raise PreflightReverted(
                f"Pre-flight {call.label or call.function} reverted: {e}", venue=venue
            ) from e

        handle = await self.signer.submit(call)
        receipt = await handle.wait()
        if not receipt.success:
            raise SwapFailed(
                f"Swap {direction.label} via {venue} failed", venue=venue, tx_hash=receipt.tx_hash
            )

        return ExecutionResult(
            success=True,
            direction=direction,
            venue=quote.venue,
            amount_in=amount_in,
            expected_out=quote.amount_out,
            min_out=min_out,
            tx_hash=receipt.tx_hash,
            approval_tx_hash=approval_tx,
        )
