"""
RPC endpoint selection by latency.

Every candidate gets one eth_blockNumber request concurrently; the fastest
endpoint that answered wins. With auto selection disabled, or when nothing
answers, the configured RPC_URL is used.
"""

import asyncio
import time
from typing import List, Optional, Sequence, Tuple

import aiohttp

from .constants import DEFAULT_RPC_TIMEOUT_SEC
from .utils import get_logger

logger = get_logger(__name__)

BLOCK_NUMBER_REQUEST = {"jsonrpc": "2.0", "id": 1, "method": "eth_blockNumber", "params": []}


async def probe_rpc(
    session: aiohttp.ClientSession, url: str, timeout_sec: float
) -> Tuple[str, Optional[float]]:
    """
    Measure one endpoint's eth_blockNumber round trip.

    Returns:
        Tuple of (url, latency in ms) with latency None when the request
        failed, timed out or returned a JSON-RPC error
    """
    start = time.perf_counter()
    try:
        async with session.post(
            url,
            json=BLOCK_NUMBER_REQUEST,
            timeout=aiohttp.ClientTimeout(total=timeout_sec),
        ) as resp:
            resp.raise_for_status()
            body = await resp.json(content_type=None)
        if not isinstance(body, dict) or "result" not in body:
            raise ValueError(f"unexpected response: {body}")
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.debug(f"RPC {url} failed: {e}")
        return url, None

    latency_ms = (time.perf_counter() - start) * 1000
    logger.debug(f"RPC {url}: {latency_ms:.0f}ms")
    return url, latency_ms


async def select_rpc(
    candidates: Sequence[str],
    fallback: str,
    timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC,
    enabled: bool = True,
) -> str:
    """
    Pick the lowest-latency RPC endpoint.

    Args:
        candidates: Endpoints to race (HTTP_RPC_LIST)
        fallback: Endpoint used when disabled or nothing answers (RPC_URL)
        timeout_sec: Per-request timeout
        enabled: Whether auto selection is on (AUTORPC=1)

    Returns:
        Chosen endpoint URL
    """
    if not enabled or not candidates:
        logger.info(f"Auto RPC off, using RPC_URL: {fallback}")
        return fallback

    logger.info(f"Testing {len(candidates)} RPC endpoints...")
    async with aiohttp.ClientSession() as session:
        results = await asyncio.gather(
            *[probe_rpc(session, url, timeout_sec) for url in candidates]
        )

    answered: List[Tuple[str, float]] = [
        (url, ms) for url, ms in results if ms is not None
    ]
    if not answered:
        logger.warning(f"No RPC endpoint answered, using RPC_URL: {fallback}")
        return fallback

    url, ms = min(answered, key=lambda r: r[1])
    logger.info(f"✓ Selected RPC: {url} ({ms:.0f}ms)")
    return url
