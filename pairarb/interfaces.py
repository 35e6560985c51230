"""
Collaborator interfaces consumed by the quoting and execution core.

The core never handles keys or RPC transports directly; it talks to these
protocols. pairarb.chain provides the web3-backed implementations and the
tests provide in-memory fakes.
"""

from typing import Any, Protocol, Tuple, runtime_checkable

from .types import ContractCall, Receipt


@runtime_checkable
class ConfirmationHandle(Protocol):
    """A submitted transaction that can be awaited until mined."""

    tx_hash: str

    async def wait(self) -> Receipt:
        """Wait for the transaction to be mined and return its receipt."""
        ...


@runtime_checkable
class ReadOnlyCaller(Protocol):
    """Runs contract calls without mutating state or spending gas."""

    async def simulate(self, call: ContractCall, sender: str) -> Any:
        """
        Simulate a call from sender.

        Returns the decoded return value; raises if the call reverts.
        """
        ...


@runtime_checkable
class Signer(Protocol):
    """Account capability: reads balances/allowances and submits transactions."""

    @property
    def address(self) -> str:
        """Checksum address of the account."""
        ...

    async def balance_of(self, asset: str) -> int:
        """Token balance of the account in smallest units."""
        ...

    async def allowance(self, asset: str, spender: str) -> int:
        """Current ERC-20 allowance granted to spender."""
        ...

    async def approve(self, asset: str, spender: str, amount: int) -> ConfirmationHandle:
        """Submit an ERC-20 approve transaction."""
        ...

    async def submit(self, call: ContractCall) -> ConfirmationHandle:
        """Submit a state-changing contract call."""
        ...


@runtime_checkable
class PoolStateReader(Protocol):
    """Reads raw V3 pool state for fallback pricing."""

    async def slot0(self, pool: str) -> Tuple[Any, ...]:
        """Return slot0; element 0 is sqrtPriceX96."""
        ...

    async def token0(self, pool: str) -> str:
        ...

    async def token1(self, pool: str) -> str:
        ...

    async def decimals(self, asset: str) -> int:
        """ERC-20 decimals() of an asset."""
        ...
