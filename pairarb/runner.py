"""
Bot cycle: balances and quotes, decision, execution.

ArbBot wires the quoting, decision and execution components around the
signer and read-only collaborators. One run_cycle() call is one scheduler
tick.
"""

import asyncio
from typing import List, Optional, Sequence

from eth_account.signers.local import LocalAccount
from web3 import Web3

from .adapters import DecimalsResolver
from .aggregator import QuoteAggregator, build_quoters
from .chain import (
    Web3Caller,
    Web3PoolReader,
    Web3Signer,
    discover_bridge_asset,
    verify_asset_decimals,
)
from .config import BotConfig
from .decision import Decision, DecisionEngine, DirectionEvaluation
from .executor import ExecutionEngine
from .interfaces import PoolStateReader, ReadOnlyCaller, Signer
from .types import ExecutionResult, Quote, TradeDirection
from .utils import fmt_amount, get_logger

logger = get_logger(__name__)


class ArbBot:
    """
    Two-asset arbitrage bot.

    Attributes:
        config: Validated configuration
        signer: Account capability (balances, approvals, swaps)
        aggregator: Venue fan-out quoting
        decision: Best-quote selection and gating
        executor: Approve / pre-flight / swap sequence
        directions: (A→B, B→A)
    """

    def __init__(
        self,
        config: BotConfig,
        signer: Signer,
        aggregator: QuoteAggregator,
        decision: DecisionEngine,
        executor: ExecutionEngine,
    ):
        self.config = config
        self.signer = signer
        self.aggregator = aggregator
        self.decision = decision
        self.executor = executor
        self.directions: Sequence[TradeDirection] = config.directions()

    @classmethod
    def build(
        cls,
        config: BotConfig,
        signer: Signer,
        caller: ReadOnlyCaller,
        pool_reader: Optional[PoolStateReader] = None,
        bridge: Optional[str] = None,
    ) -> "ArbBot":
        """Wire a bot from already constructed collaborators."""
        decimals = DecimalsResolver(pool_reader, config.known_decimals())
        quoters = build_quoters(
            config, caller, pool_reader, decimals, signer.address, bridge
        )
        return cls(
            config=config,
            signer=signer,
            aggregator=QuoteAggregator(quoters),
            decision=DecisionEngine(config.asset_a.to_asset(), config.parity_rate),
            executor=ExecutionEngine(
                signer, caller, config.slippage_bps, config.deadline_sec
            ),
        )

    @classmethod
    async def from_config(
        cls, config: BotConfig, web3: Web3, account: LocalAccount
    ) -> "ArbBot":
        """
        Wire a bot against a live chain.

        Checks the configured asset decimals against decimals() on chain and
        discovers the bridge asset for multi-hop venues.

        Raises:
            ConfigError: If configured decimals differ from the chain
        """
        caller = Web3Caller(web3)
        signer = Web3Signer(web3, account, caller, tx_timeout=config.tx_timeout_sec)
        reader = Web3PoolReader(caller, account.address)
        await verify_asset_decimals(reader, config.known_decimals())
        bridge = await discover_bridge_asset(
            caller, config.v3_router, account.address, config.bridge_asset
        )
        return cls.build(config, signer, caller, reader, bridge)

    def log_quotes(self, direction: TradeDirection, quotes: List[Quote]) -> None:
        unit = direction.asset_out.symbol
        for quote in quotes:
            profit = self.decision.profit(direction, quote)
            source = " [pool]" if quote.source == "pool" else ""
            logger.info(
                f"({direction.label}) {quote.venue.name}{source}: "
                f"{fmt_amount(quote.amount_out_human)} {unit} "
                f"(profit {profit:+.6f} {unit})"
            )

    async def scan(self) -> Decision:
        """Read balances and quotes concurrently, then decide."""
        a_to_b, b_to_a = self.directions
        balance_a, balance_b, (quotes_ab, quotes_ba) = await asyncio.gather(
            self.signer.balance_of(a_to_b.asset_in.address),
            self.signer.balance_of(b_to_a.asset_in.address),
            self.aggregator.collect_both(self.directions),
        )
        logger.debug(
            f"Balances: {fmt_amount(a_to_b.asset_in.to_units(balance_a))} "
            f"{a_to_b.asset_in.symbol}, "
            f"{fmt_amount(b_to_a.asset_in.to_units(balance_b))} {b_to_a.asset_in.symbol}"
        )

        self.log_quotes(a_to_b, quotes_ab)
        self.log_quotes(b_to_a, quotes_ba)

        evaluations: List[DirectionEvaluation] = [
            self.decision.evaluate(a_to_b, quotes_ab, balance_a),
            self.decision.evaluate(b_to_a, quotes_ba, balance_b),
        ]
        return self.decision.decide(evaluations)

    async def run_cycle(self) -> Optional[ExecutionResult]:
        """
        One scan/decide/execute pass.

        Returns:
            ExecutionResult when a swap was confirmed, None when no direction
            qualified

        Raises:
            ExecutionError: If the approval, pre-flight or swap failed
        """
        a, b = self.config.asset_a.symbol, self.config.asset_b.symbol
        logger.info(f"🤖 Scanning venues ({a}↔{b})")

        decision = await self.scan()
        if not decision.has_action:
            return None

        chosen = decision.chosen
        quoter = self.aggregator.quoter_for(chosen.best.venue)
        result = await self.executor.execute(chosen.direction, chosen.best, quoter)

        unit = chosen.direction.asset_out.symbol
        logger.info(
            f"💱 Swap {chosen.direction.label} via {chosen.best.venue.name} "
            f"≈ +{fmt_amount(chosen.profit)} {unit}"
        )
        logger.info(f"✓ Tx: {result.tx_hash}")
        return result
