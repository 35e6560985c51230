"""
Default deployment: USDC / vUSD on Cronos zkEVM.
"""

DEFAULT_RPC_URL = "https://mainnet.zkevm.cronos.org"

USDC_ADDRESS = "0xaa5b845F8C9c047779bEDf64829601d8B264076c"
VUSD_ADDRESS = "0x5b91e29Ae5A71d9052620Acb813d5aC25eC7a4A2"
USDC_DECIMALS = 6
VUSD_DECIMALS = 18

V3_ROUTER_ADDRESS = "0x33d2394f6Ca43aba6716982d6CB0824Db4A912b2"
V2_ROUTER_ADDRESS = "0x39aD8C3067281e60045DF041846EE01c1Dd3a853"

V3_POOLS = [
    {"name": "V3 0.05%", "address": "0xb808a593Ce19eaf73D3A69B02A5a74E57B8edc7d", "fee": 500},
    {"name": "V3 0.3%", "address": "0x3a7377c1C2AEf2424aAda1BcDBEE1322170b40F0", "fee": 3000},
]

# Standard constant-product fee, 0.30%
V2_FEE_PPM = 3000

# Fee tiers (first hop, second hop) tried through the bridge asset
MULTI_HOP_FEE_COMBOS = [
    (500, 500),
    (500, 3000),
    (3000, 500),
    (3000, 3000),
]

MAX_UINT256 = 2**256 - 1

DEFAULT_POLL_INTERVAL_MS = 20_000
DEFAULT_TRADE_SIZE = "1000"
DEFAULT_PROFIT_THRESHOLD = "3"
DEFAULT_SLIPPAGE_BPS = 150  # 1.5%
DEFAULT_DEADLINE_SEC = 60
DEFAULT_RPC_TIMEOUT_SEC = 4.0
DEFAULT_TX_TIMEOUT_SEC = 120
