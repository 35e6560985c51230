"""
Tests for the web3-backed collaborators, with web3 objects mocked.
"""

from unittest.mock import MagicMock

import pytest

from fakes import BRIDGE, USDC, V3_ROUTER, VUSD, WALLET, FakeCaller, FakePoolReader
from pairarb.abi import ERC20_ABI
from pairarb.chain import (
    TransactionHandle,
    Web3Caller,
    Web3PoolReader,
    Web3Signer,
    connect,
    discover_bridge_asset,
    verify_asset_decimals,
)
from pairarb.exceptions import ConfigError
from pairarb.interfaces import ConfirmationHandle, PoolStateReader, ReadOnlyCaller, Signer
from pairarb.types import ContractCall


def mock_web3():
    web3 = MagicMock()
    web3.to_hex.side_effect = lambda b: "0x" + bytes(b).hex()
    return web3


class TestWeb3Caller:
    @pytest.mark.asyncio
    async def test_simulate_calls_function_from_sender(self):
        web3 = mock_web3()
        contract = web3.eth.contract.return_value
        contract.functions.balanceOf.return_value.call.return_value = 123

        call = ContractCall(USDC.address, ERC20_ABI, "balanceOf", (WALLET,))
        assert await Web3Caller(web3).simulate(call, WALLET) == 123

        web3.eth.contract.assert_called_once_with(address=USDC.address, abi=ERC20_ABI)
        contract.functions.balanceOf.assert_called_once_with(WALLET)
        contract.functions.balanceOf.return_value.call.assert_called_once_with(
            {"from": WALLET}
        )

    @pytest.mark.asyncio
    async def test_revert_propagates(self):
        web3 = mock_web3()
        fn = web3.eth.contract.return_value.functions.exactInput.return_value
        fn.call.side_effect = RuntimeError("execution reverted")

        call = ContractCall(V3_ROUTER, [], "exactInput", ((b"", WALLET, 1, 0),))
        with pytest.raises(RuntimeError):
            await Web3Caller(web3).simulate(call, WALLET)


class TestWeb3Signer:
    def make(self):
        web3 = mock_web3()
        account = MagicMock()
        account.address = WALLET
        account.sign_transaction.return_value.raw_transaction = b"\x02signed"
        web3.eth.get_transaction_count.return_value = 7
        web3.eth.send_raw_transaction.return_value = b"\xab" * 32
        return web3, account, Web3Signer(web3, account)

    @pytest.mark.asyncio
    async def test_submit_signs_and_broadcasts(self):
        web3, account, signer = self.make()
        fn = web3.eth.contract.return_value.functions.approve.return_value
        fn.build_transaction.return_value = {"to": USDC.address, "nonce": 7}

        handle = await signer.approve(USDC.address, V3_ROUTER, 2**256 - 1)

        web3.eth.contract.return_value.functions.approve.assert_called_once_with(
            V3_ROUTER, 2**256 - 1
        )
        web3.eth.get_transaction_count.assert_called_once_with(WALLET, "pending")
        fn.build_transaction.assert_called_once_with({"from": WALLET, "nonce": 7})
        account.sign_transaction.assert_called_once_with({"to": USDC.address, "nonce": 7})
        web3.eth.send_raw_transaction.assert_called_once_with(b"\x02signed")
        assert handle.tx_hash == "0x" + "ab" * 32

    @pytest.mark.asyncio
    async def test_allowance_reads_owner_and_spender(self):
        web3, _, signer = self.make()
        fn = web3.eth.contract.return_value.functions.allowance
        fn.return_value.call.return_value = 55

        assert await signer.allowance(USDC.address, V3_ROUTER) == 55
        fn.assert_called_once_with(WALLET, V3_ROUTER)

    def test_satisfies_protocols(self):
        web3, _, signer = self.make()
        assert isinstance(signer, Signer)
        assert isinstance(Web3Caller(web3), ReadOnlyCaller)
        assert isinstance(Web3PoolReader(Web3Caller(web3), WALLET), PoolStateReader)
        assert isinstance(TransactionHandle(web3, "0x1"), ConfirmationHandle)


class TestTransactionHandle:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,success", [(1, True), (0, False)])
    async def test_wait(self, status, success):
        web3 = mock_web3()
        web3.eth.wait_for_transaction_receipt.return_value = {
            "status": status,
            "blockNumber": 99,
        }
        receipt = await TransactionHandle(web3, "0xfeed", timeout=30).wait()

        assert receipt.success is success
        assert receipt.tx_hash == "0xfeed"
        assert receipt.block_number == 99
        web3.eth.wait_for_transaction_receipt.assert_called_once_with("0xfeed", timeout=30)


class TestWeb3PoolReader:
    @pytest.mark.asyncio
    async def test_reads_pool_state(self):
        caller = (
            FakeCaller()
            .on(BRIDGE, "slot0", [2**96, 0, 0, 0, 0, 0, True])
            .on(BRIDGE, "token0", USDC.address.lower())
            .on(USDC.address, "decimals", 6)
        )
        reader = Web3PoolReader(caller, WALLET)

        assert (await reader.slot0(BRIDGE))[0] == 2**96
        assert await reader.token0(BRIDGE) == USDC.address
        assert await reader.decimals(USDC.address) == 6


class TestDiscoverBridge:
    @pytest.mark.asyncio
    async def test_router_answer_wins(self):
        caller = FakeCaller().on(V3_ROUTER, "WETH9", BRIDGE.lower())
        assert await discover_bridge_asset(caller, V3_ROUTER, WALLET, USDC.address) == BRIDGE

    @pytest.mark.asyncio
    async def test_configured_fallback(self):
        bridge = await discover_bridge_asset(FakeCaller(), V3_ROUTER, WALLET, BRIDGE.lower())
        assert bridge == BRIDGE

    @pytest.mark.asyncio
    async def test_zero_address_ignored(self):
        caller = FakeCaller().on(V3_ROUTER, "WETH9", "0x" + "00" * 20)
        assert await discover_bridge_asset(caller, V3_ROUTER, WALLET, None) is None

    @pytest.mark.asyncio
    async def test_none_available(self):
        assert await discover_bridge_asset(FakeCaller(), V3_ROUTER, WALLET) is None


class TestVerifyAssetDecimals:
    def reader(self, usdc, vusd):
        reader = FakePoolReader()
        reader.token_decimals = {USDC.address.lower(): usdc, VUSD.address.lower(): vusd}
        return reader

    @pytest.mark.asyncio
    async def test_matching_values_pass(self):
        expected = {USDC.address: 6, VUSD.address: 18}
        assert await verify_asset_decimals(self.reader(6, 18), expected) == expected

    @pytest.mark.asyncio
    async def test_mismatch_raises_config_error(self):
        expected = {USDC.address: 6, VUSD.address: 6}
        with pytest.raises(ConfigError) as exc:
            await verify_asset_decimals(self.reader(6, 18), expected)

        assert VUSD.address in str(exc.value)
        assert exc.value.details["mismatched"] == {
            VUSD.address: {"configured": 6, "chain": 18}
        }


def test_connect_rejects_non_http_url():
    with pytest.raises(ValueError):
        connect("wss://mainnet.zkevm.cronos.org")
