"""
Web3-backed collaborators: read-only caller, signer, pool reader.

web3.py is synchronous, so every RPC round trip runs in the default thread
pool via loop.run_in_executor. Quotes for all venues can then fan out
concurrently on a single event loop.
"""

import asyncio
import functools
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from eth_account.signers.local import LocalAccount
from web3 import Web3

from .abi import ERC20_ABI, V3_POOL_ABI, V3_ROUTER_ABI
from .constants import DEFAULT_TX_TIMEOUT_SEC
from .exceptions import ConfigError
from .types import ContractCall, Receipt
from .utils import get_logger

logger = get_logger(__name__)


async def _run_blocking(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))


def connect(rpc_url: str, timeout: float = 20) -> Web3:
    """
    Create a Web3 HTTP client and verify the endpoint answers.

    Raises:
        ValueError: If the URL is not http(s)
        Exception: If the endpoint cannot report its chain id or block
    """
    if not rpc_url.startswith(("http://", "https://")):
        raise ValueError(f"Invalid RPC URL format: {rpc_url}")

    logger.info(f"Connecting to RPC: {rpc_url}")
    web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    chain_id = web3.eth.chain_id
    block = web3.eth.block_number
    logger.info(f"✓ Connected to chain {chain_id} (block #{block:,})")
    return web3


class Web3Caller:
    """Runs ContractCall descriptors as eth_call simulations."""

    def __init__(self, web3: Web3):
        self.web3 = web3

    def bind(self, call: ContractCall):
        contract = self.web3.eth.contract(
            address=Web3.to_checksum_address(call.address), abi=call.abi
        )
        return getattr(contract.functions, call.function)(*call.args)

    async def simulate(self, call: ContractCall, sender: str) -> Any:
        fn = self.bind(call)
        return await _run_blocking(fn.call, {"from": sender})


class TransactionHandle:
    """A broadcast transaction; wait() blocks (off-loop) until it is mined."""

    def __init__(self, web3: Web3, tx_hash: str, timeout: int = DEFAULT_TX_TIMEOUT_SEC):
        self.web3 = web3
        self.tx_hash = tx_hash
        self.timeout = timeout

    async def wait(self) -> Receipt:
        receipt = await _run_blocking(
            self.web3.eth.wait_for_transaction_receipt, self.tx_hash, timeout=self.timeout
        )
        return Receipt(
            success=receipt["status"] == 1,
            tx_hash=self.tx_hash,
            block_number=receipt.get("blockNumber"),
        )

    def __repr__(self) -> str:
        return f"<TransactionHandle {self.tx_hash}>"


class Web3Signer:
    """
    Account capability backed by a local eth-account key.

    Transactions are built with web3's gas and fee estimation, signed
    locally and broadcast as raw transactions. Nonces are read as "pending"
    so an approval followed by a swap in the same cycle get consecutive
    nonces.
    """

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        caller: Optional[Web3Caller] = None,
        tx_timeout: int = DEFAULT_TX_TIMEOUT_SEC,
    ):
        self.web3 = web3
        self.account = account
        self.caller = caller or Web3Caller(web3)
        self.tx_timeout = tx_timeout

    @property
    def address(self) -> str:
        return self.account.address

    def _erc20(self, asset: str, function: str, *args: Any) -> ContractCall:
        return ContractCall(
            address=asset, abi=ERC20_ABI, function=function, args=args, label=function
        )

    async def balance_of(self, asset: str) -> int:
        return int(
            await self.caller.simulate(
                self._erc20(asset, "balanceOf", self.address), self.address
            )
        )

    async def allowance(self, asset: str, spender: str) -> int:
        return int(
            await self.caller.simulate(
                self._erc20(asset, "allowance", self.address, spender), self.address
            )
        )

    async def approve(self, asset: str, spender: str, amount: int) -> TransactionHandle:
        return await self.submit(self._erc20(asset, "approve", spender, amount))

    def _sign_and_send(self, call: ContractCall) -> str:
        fn = self.caller.bind(call)
        nonce = self.web3.eth.get_transaction_count(self.address, "pending")
        tx = fn.build_transaction({"from": self.address, "nonce": nonce})
        signed = self.account.sign_transaction(tx)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        return self.web3.to_hex(tx_hash)

    async def submit(self, call: ContractCall) -> TransactionHandle:
        tx_hash = await _run_blocking(self._sign_and_send, call)
        logger.debug(f"Sent {call.label or call.function}: {tx_hash}")
        return TransactionHandle(self.web3, tx_hash, timeout=self.tx_timeout)


class Web3PoolReader:
    """Reads V3 pool state and token decimals through a Web3Caller."""

    def __init__(self, caller: Web3Caller, sender: str):
        self.caller = caller
        self.sender = sender

    async def _pool(self, pool: str, function: str) -> Any:
        call = ContractCall(address=pool, abi=V3_POOL_ABI, function=function)
        return await self.caller.simulate(call, self.sender)

    async def slot0(self, pool: str) -> Tuple[Any, ...]:
        return tuple(await self._pool(pool, "slot0"))

    async def token0(self, pool: str) -> str:
        return Web3.to_checksum_address(await self._pool(pool, "token0"))

    async def token1(self, pool: str) -> str:
        return Web3.to_checksum_address(await self._pool(pool, "token1"))

    async def decimals(self, asset: str) -> int:
        call = ContractCall(address=asset, abi=ERC20_ABI, function="decimals")
        return int(await self.caller.simulate(call, self.sender))


async def discover_bridge_asset(
    caller: Any, router: str, sender: str, configured: Optional[str] = None
) -> Optional[str]:
    """
    Find the intermediate asset for multi-hop venues.

    Asks the V3 router for WETH9() first, then falls back to the configured
    address. Returns None when neither is available; multi-hop venues are
    then skipped.
    """
    call = ContractCall(address=router, abi=V3_ROUTER_ABI, function="WETH9", label="WETH9")
    try:
        bridge = await caller.simulate(call, sender)
        if bridge and int(bridge, 16) != 0:
            bridge = Web3.to_checksum_address(bridge)
            logger.info(f"Bridge asset from router: {bridge}")
            return bridge
    except Exception as e:
        logger.debug(f"router.WETH9() failed: {e}")

    if configured:
        logger.info(f"Bridge asset from config: {configured}")
        return Web3.to_checksum_address(configured)

    logger.warning("No bridge asset available, multi-hop venues disabled")
    return None


async def verify_asset_decimals(reader: Any, expected: Mapping[str, int]) -> Dict[str, int]:
    """
    Read decimals() of each traded asset and compare with the configured value.

    Args:
        reader: Anything with an async decimals(asset) method
        expected: Asset address -> configured decimals

    Returns:
        Asset address -> on-chain decimals

    Raises:
        ConfigError: If any configured value differs from the chain
    """
    addresses = list(expected)
    values = await asyncio.gather(*(reader.decimals(a) for a in addresses))
    actual = dict(zip(addresses, values))

    mismatched = {
        a: {"configured": expected[a], "chain": actual[a]}
        for a in addresses
        if expected[a] != actual[a]
    }
    if mismatched:
        raise ConfigError(
            "Configured decimals do not match the chain: "
            + ", ".join(
                f"{a} configured {m['configured']}, chain {m['chain']}"
                for a, m in mismatched.items()
            ),
            details={"mismatched": mismatched},
        )
    logger.debug(f"Asset decimals verified: {actual}")
    return actual
