"""
Tests for latency-based RPC selection against a local aiohttp server.
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from pairarb.rpc_select import select_rpc

FALLBACK = "https://fallback.example.org"


def make_app():
    async def fast(request):
        body = await request.json()
        assert body["method"] == "eth_blockNumber"
        return web.json_response({"jsonrpc": "2.0", "id": 1, "result": "0x10"})

    async def slow(request):
        await asyncio.sleep(0.2)
        return web.json_response({"jsonrpc": "2.0", "id": 1, "result": "0x10"})

    async def broken(request):
        return web.Response(status=500, text="oops")

    async def rpc_error(request):
        return web.json_response({"jsonrpc": "2.0", "id": 1, "error": {"code": -32000}})

    async def hang(request):
        await asyncio.sleep(0.5)
        return web.json_response({"result": "0x1"})

    app = web.Application()
    app.router.add_post("/fast", fast)
    app.router.add_post("/slow", slow)
    app.router.add_post("/broken", broken)
    app.router.add_post("/rpc-error", rpc_error)
    app.router.add_post("/hang", hang)
    return app


class RpcServer:
    async def __aenter__(self):
        self.server = test_utils.TestServer(make_app())
        await self.server.start_server()
        return self

    async def __aexit__(self, *exc):
        await self.server.close()

    def url(self, path):
        return str(self.server.make_url(path))


class TestSelectRpc:
    @pytest.mark.asyncio
    async def test_disabled_returns_fallback(self):
        assert await select_rpc(["http://127.0.0.1:1/x"], FALLBACK, enabled=False) == FALLBACK

    @pytest.mark.asyncio
    async def test_no_candidates_returns_fallback(self):
        assert await select_rpc([], FALLBACK, enabled=True) == FALLBACK

    @pytest.mark.asyncio
    async def test_fastest_answering_endpoint_wins(self):
        async with RpcServer() as rpc:
            candidates = [rpc.url("/slow"), rpc.url("/broken"), rpc.url("/fast")]
            assert await select_rpc(candidates, FALLBACK, timeout_sec=2) == rpc.url("/fast")

    @pytest.mark.asyncio
    async def test_errors_and_timeouts_fall_back(self):
        async with RpcServer() as rpc:
            candidates = [rpc.url("/broken"), rpc.url("/rpc-error"), rpc.url("/hang")]
            assert await select_rpc(candidates, FALLBACK, timeout_sec=0.1) == FALLBACK

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_is_skipped(self):
        async with RpcServer() as rpc:
            candidates = ["http://127.0.0.1:1/", rpc.url("/slow")]
            assert await select_rpc(candidates, FALLBACK, timeout_sec=2) == rpc.url("/slow")
