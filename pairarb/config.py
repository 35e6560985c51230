"""
Configuration loading and validation for the pair arbitrage bot.

Sources, lowest to highest precedence:
    1. Built-in defaults (pairarb.constants)
    2. Optional YAML file
    3. Environment variables (RPC_URL, CHECK_INTERVAL_MS, SLIPPAGE_BPS, ...)

The signing key is never part of the config; the CLI reads PRIVATE_KEY
directly.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from web3 import Web3

from . import constants
from .exceptions import ConfigError
from .types import Asset, TradeDirection, VenueDescriptor
from .utils import deep_merge, get_logger

logger = get_logger(__name__)

# Environment variable -> config field
ENV_FIELDS = {
    "RPC_URL": "rpc_url",
    "AUTORPC": "auto_rpc",
    "HTTP_RPC_LIST": "rpc_candidates",
    "CHECK_INTERVAL_MS": "poll_interval_ms",
    "TRADE_AMOUNT_A": "trade_size_a",
    "TRADE_AMOUNT_B": "trade_size_b",
    "PROFIT_THRESHOLD_A_TO_B": "profit_threshold_a_to_b",
    "PROFIT_THRESHOLD_B_TO_A": "profit_threshold_b_to_a",
    "SLIPPAGE_BPS": "slippage_bps",
    "DEADLINE_SEC": "deadline_sec",
    "PARITY_RATE": "parity_rate",
    "WETH9": "bridge_asset",
    "DEBUG": "verbose",
}

# Asset-named variables of the default USDC/vUSD deployment. The A/B names
# take precedence when both are set.
ENV_ALIASES = {
    "TRADE_AMOUNT_USDC": "trade_size_a",
    "TRADE_AMOUNT_VUSD": "trade_size_b",
    "PROFIT_THRESHOLD_VUSD": "profit_threshold_a_to_b",
    "PROFIT_THRESHOLD_USDC": "profit_threshold_b_to_a",
}

FLAG_FIELDS = {"auto_rpc", "verbose"}


def _checksum(value: str) -> str:
    # Case is normalised rather than checked against the EIP-55 checksum
    if not isinstance(value, str) or not Web3.is_address(value.lower()):
        raise ValueError(f"Invalid address: {value}")
    return Web3.to_checksum_address(value)


class AssetConfig(BaseModel):
    """One of the two traded assets"""

    symbol: str = Field(min_length=1)
    address: str
    decimals: int = Field(ge=0, le=77)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _checksum(v)

    def to_asset(self) -> Asset:
        return Asset(symbol=self.symbol, address=self.address, decimals=self.decimals)


class V3PoolConfig(BaseModel):
    """A V3 fee-tier pool between the two assets"""

    fee: int = Field(gt=0, lt=2**24, description="Fee tier in parts-per-million")
    address: Optional[str] = Field(
        default=None, description="Pool address, enables slot0 fallback pricing"
    )
    name: str = ""

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if v is None:
            return v
        return _checksum(v)

    def to_venue(self) -> VenueDescriptor:
        return VenueDescriptor.v3_single(self.fee, self.address, self.name)


class BotConfig(BaseModel):
    """
    Validated bot configuration.

    Amounts are human units (Decimal). Thresholds are expressed in units of
    the direction's output asset.
    """

    # RPC
    rpc_url: str = constants.DEFAULT_RPC_URL
    auto_rpc: bool = False
    rpc_candidates: List[str] = Field(default_factory=list)
    rpc_timeout_sec: float = Field(default=constants.DEFAULT_RPC_TIMEOUT_SEC, gt=0)
    tx_timeout_sec: int = Field(default=constants.DEFAULT_TX_TIMEOUT_SEC, gt=0)

    # Loop
    poll_interval_ms: int = Field(default=constants.DEFAULT_POLL_INTERVAL_MS, gt=0)
    verbose: bool = False

    # Assets and sizing
    asset_a: AssetConfig = Field(
        default_factory=lambda: AssetConfig(
            symbol="USDC",
            address=constants.USDC_ADDRESS,
            decimals=constants.USDC_DECIMALS,
        )
    )
    asset_b: AssetConfig = Field(
        default_factory=lambda: AssetConfig(
            symbol="vUSD",
            address=constants.VUSD_ADDRESS,
            decimals=constants.VUSD_DECIMALS,
        )
    )
    trade_size_a: Decimal = Field(default=Decimal(constants.DEFAULT_TRADE_SIZE), gt=0)
    trade_size_b: Decimal = Field(default=Decimal(constants.DEFAULT_TRADE_SIZE), gt=0)
    profit_threshold_a_to_b: Decimal = Decimal(constants.DEFAULT_PROFIT_THRESHOLD)
    profit_threshold_b_to_a: Decimal = Decimal(constants.DEFAULT_PROFIT_THRESHOLD)
    slippage_bps: int = Field(default=constants.DEFAULT_SLIPPAGE_BPS, ge=0, lt=10_000)
    deadline_sec: int = Field(default=constants.DEFAULT_DEADLINE_SEC, gt=0)
    parity_rate: Decimal = Field(
        default=Decimal(1),
        gt=0,
        description="Units of asset A per one unit of asset B",
    )

    # Venues
    v3_router: str = constants.V3_ROUTER_ADDRESS
    v2_router: Optional[str] = constants.V2_ROUTER_ADDRESS
    v3_pools: List[V3PoolConfig] = Field(
        default_factory=lambda: [V3PoolConfig(**p) for p in constants.V3_POOLS]
    )
    v2_fee: int = Field(default=constants.V2_FEE_PPM, ge=0, lt=1_000_000)
    bridge_asset: Optional[str] = None
    multi_hop_fees: List[Tuple[int, int]] = Field(
        default_factory=lambda: list(constants.MULTI_HOP_FEE_COMBOS)
    )

    @field_validator("rpc_candidates", mode="before")
    @classmethod
    def split_rpc_list(cls, v):
        if isinstance(v, str):
            return [url.strip() for url in v.split(",") if url.strip()]
        return v

    @field_validator("v3_router", "v2_router", "bridge_asset")
    @classmethod
    def validate_addresses(cls, v):
        if v is None or v == "":
            return None
        return _checksum(v)

    @model_validator(mode="after")
    def validate_assets(self):
        if self.asset_a.address == self.asset_b.address:
            raise ValueError("asset_a and asset_b must be different tokens")
        if self.v3_router is None:
            raise ValueError("v3_router is required")
        return self

    @property
    def poll_interval_sec(self) -> float:
        return self.poll_interval_ms / 1000.0

    def directions(self) -> Tuple[TradeDirection, TradeDirection]:
        """Return (A→B, B→A) trade directions with their sizes and thresholds."""
        a, b = self.asset_a.to_asset(), self.asset_b.to_asset()
        return (
            TradeDirection(a, b, self.trade_size_a, self.profit_threshold_a_to_b),
            TradeDirection(b, a, self.trade_size_b, self.profit_threshold_b_to_a),
        )

    def known_decimals(self) -> Dict[str, int]:
        return {
            self.asset_a.address: self.asset_a.decimals,
            self.asset_b.address: self.asset_b.decimals,
        }


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML config file.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping in {path}")
    return data


def env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    """Collect config overrides from environment variables that are set and non-empty."""
    overrides: Dict[str, Any] = {}
    for var, field in [*ENV_ALIASES.items(), *ENV_FIELDS.items()]:
        raw = env.get(var)
        if raw is None or raw.strip() == "":
            continue
        if field in FLAG_FIELDS:
            overrides[field] = raw.strip() == "1"
        else:
            overrides[field] = raw.strip()
    return overrides


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BotConfig:
    """
    Build the bot configuration from defaults, YAML and environment.

    Args:
        path: Optional YAML config file
        env: Environment mapping (defaults to os.environ)

    Returns:
        Validated BotConfig

    Raises:
        ConfigError: If any source fails validation
    """
    data: Dict[str, Any] = {}
    if path is not None:
        data = load_yaml(path)

    data = deep_merge(data, env_overrides(os.environ if env is None else env))

    try:
        config = BotConfig(**data)
    except ValidationError as e:
        raise ConfigError(
            f"Configuration validation failed: {e}", details={"errors": e.errors()}
        ) from e

    logger.debug(
        f"Config loaded: rpc={config.rpc_url} interval={config.poll_interval_ms}ms "
        f"slippage={config.slippage_bps}bps"
    )
    return config
