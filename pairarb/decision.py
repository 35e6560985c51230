"""
Decision engine: best quote per direction, profitability and balance gating.

Profit for a direction is the best output minus the trade size, both in
output-asset human units. Converting the input trade size into output units
uses a named parity assumption:

    parity_rate = units of asset A per one unit of asset B

With the default parity_rate of 1 the two assets are treated as equal in
value (the stablecoin-pair approximation). When both directions clear their
thresholds, profits are compared after expressing them in asset A units.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Sequence

from .types import Asset, Quote, TradeDirection
from .utils import fmt_amount, get_logger

logger = get_logger(__name__)


class SkipReason(str, Enum):
    """Why a direction is not eligible this cycle."""

    NO_QUOTES = "no usable quotes"
    INSUFFICIENT_BALANCE = "insufficient balance"
    BELOW_THRESHOLD = "profit below threshold"


def select_best(quotes: Sequence[Quote]) -> Optional[Quote]:
    """
    Best quote by output amount.

    Ties on amount_out go to the venue with the lowest total fee, then to
    the earliest quote in venue order.
    """
    best: Optional[Quote] = None
    for quote in quotes:
        if best is None:
            best = quote
            continue
        if quote.amount_out > best.amount_out:
            best = quote
        elif (
            quote.amount_out == best.amount_out
            and quote.venue.total_fee_ppm < best.venue.total_fee_ppm
        ):
            best = quote
    return best


@dataclass
class DirectionEvaluation:
    """
    Outcome of gating one direction.

    Attributes:
        direction: Direction evaluated
        best: Best quote, None when no venue quoted
        profit: Profit in output-asset human units, None without a quote
        profit_reference: Profit in asset A units, for comparing directions
        balance: Wallet balance of the input asset in smallest units
        skip_reason: Why the direction is ineligible, None if eligible
    """

    direction: TradeDirection
    best: Optional[Quote]
    profit: Optional[Decimal]
    profit_reference: Optional[Decimal]
    balance: int
    skip_reason: Optional[SkipReason] = None

    @property
    def eligible(self) -> bool:
        return self.skip_reason is None


@dataclass
class Decision:
    """Evaluations of both directions and the chosen one, if any."""

    evaluations: List[DirectionEvaluation] = field(default_factory=list)
    chosen: Optional[DirectionEvaluation] = None

    @property
    def has_action(self) -> bool:
        return self.chosen is not None


class DecisionEngine:
    """
    Chooses at most one direction per cycle.

    Args:
        reference: Asset A, the unit profits are compared in
        parity_rate: Units of asset A per one unit of asset B
    """

    def __init__(self, reference: Asset, parity_rate: Decimal = Decimal(1)):
        if parity_rate <= 0:
            raise ValueError(f"parity_rate must be positive: {parity_rate}")
        self.reference = reference
        self.parity_rate = Decimal(parity_rate)

    def _rate(self, asset: Asset) -> Decimal:
        """Value of one unit of asset in reference units."""
        if asset.address.lower() == self.reference.address.lower():
            return Decimal(1)
        return self.parity_rate

    def convert(self, amount: Decimal, from_asset: Asset, to_asset: Asset) -> Decimal:
        """Convert a human amount between the two assets at the parity rate."""
        return amount * self._rate(from_asset) / self._rate(to_asset)

    def profit(self, direction: TradeDirection, quote: Quote) -> Decimal:
        """Profit of a quote in output-asset human units."""
        cost = self.convert(direction.trade_size, direction.asset_in, direction.asset_out)
        return quote.amount_out_human - cost

    def evaluate(
        self, direction: TradeDirection, quotes: Sequence[Quote], balance: int
    ) -> DirectionEvaluation:
        best = select_best(quotes)
        if best is None:
            return DirectionEvaluation(
                direction, None, None, None, balance, SkipReason.NO_QUOTES
            )

        profit = self.profit(direction, best)
        profit_reference = profit * self._rate(direction.asset_out)

        reason = None
        if balance < direction.amount_in:
            reason = SkipReason.INSUFFICIENT_BALANCE
        elif profit < direction.profit_threshold:
            reason = SkipReason.BELOW_THRESHOLD

        return DirectionEvaluation(
            direction, best, profit, profit_reference, balance, reason
        )

    def decide(self, evaluations: Sequence[DirectionEvaluation]) -> Decision:
        """
        Pick the direction to execute.

        One eligible direction is chosen as is. With several eligible, the
        highest profit in asset A units wins; ties favour the earlier one
        (A→B). With none eligible, the causes are logged and no action is
        taken.
        """
        decision = Decision(evaluations=list(evaluations))

        for ev in evaluations:
            if not ev.eligible:
                continue
            if (
                decision.chosen is None
                or ev.profit_reference > decision.chosen.profit_reference
            ):
                decision.chosen = ev

        if decision.chosen is None:
            self._log_no_action(evaluations)
        return decision

    def _log_no_action(self, evaluations: Sequence[DirectionEvaluation]) -> None:
        for ev in evaluations:
            if ev.skip_reason == SkipReason.INSUFFICIENT_BALANCE:
                logger.warning(
                    f"{ev.direction.label}: insufficient {ev.direction.asset_in.symbol} "
                    f"(have {fmt_amount(ev.direction.asset_in.to_units(ev.balance))}, "
                    f"need {ev.direction.trade_size})"
                )
            elif ev.skip_reason == SkipReason.BELOW_THRESHOLD:
                logger.warning(
                    f"{ev.direction.label}: profit {fmt_amount(ev.profit)} "
                    f"{ev.direction.asset_out.symbol} < threshold "
                    f"{ev.direction.profit_threshold}"
                )

        if all(ev.skip_reason == SkipReason.NO_QUOTES for ev in evaluations):
            logger.error("No usable quotes in either direction")
        logger.info("No profitable direction")
