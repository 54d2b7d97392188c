"""Chain reads: proxy, nonce and order status.

The collaborators below are implemented by the caller's transport layer
(for example a web3 client behind a multicall aggregator). Errors they
raise propagate unchanged.
"""

from typing import Any, List, Optional, Protocol, Sequence, Tuple

from eth_utils import to_checksum_address

from .types import (
    AdvancedOrder,
    BalanceAndApproval,
    BasicOrderParameters,
    Item,
    Order,
    OrderComponents,
    OrderStatus,
)
from .utils import ZERO_ADDRESS


class ProxyRegistry(Protocol):
    """Lookup of legacy proxy contracts."""

    async def get_proxy(self, account: str, legacy_proxy_registry_address: str) -> Optional[str]:
        """Get the account's proxy, or None (or the zero address) if unregistered."""
        ...


class BalanceReader(Protocol):
    """Balance and allowance scan for a set of items."""

    async def get_balances_and_approvals(
        self, owner: str, items: Sequence[Item], proxy: Optional[str]
    ) -> List[BalanceAndApproval]:
        """Get the owner's balance and both allowances for every item."""
        ...


class ChainProvider(Protocol):
    """Read access to the chain and per-account signers."""

    def get_signer(self, account_address: Optional[str] = None) -> Any:
        """Get a signer bound to the account (default account if None)."""
        ...

    async def get_chain_id(self) -> int:
        ...

    async def get_block_number(self) -> int:
        ...

    async def get_block_timestamp(self, block_number: int) -> int:
        ...


class ConsiderationContract(Protocol):
    """Bindings for the Consideration contract."""

    address: str

    async def get_nonce(self, offerer: str, zone: str) -> int:
        ...

    async def get_order_status(self, order_hash: str) -> Tuple[bool, bool, int, int]:
        """Get (is_validated, is_cancelled, total_filled, total_size)."""
        ...

    async def cancel(self, orders: Sequence[OrderComponents], signer: Any) -> Any:
        ...

    async def increment_nonce(self, offerer: str, zone: str, signer: Any) -> Any:
        ...

    async def validate(self, orders: Sequence[Order], signer: Any) -> Any:
        ...

    async def fulfill_basic_order(
        self, parameters: BasicOrderParameters, signer: Any, value: int = 0
    ) -> Any:
        ...

    async def fulfill_order(
        self, order: Order, use_fulfiller_proxy: bool, signer: Any, value: int = 0
    ) -> Any:
        ...

    async def fulfill_advanced_order(
        self, order: AdvancedOrder, use_fulfiller_proxy: bool, signer: Any, value: int = 0
    ) -> Any:
        ...


async def get_proxy(
    account: str,
    registry: ProxyRegistry,
    legacy_proxy_registry_address: str,
) -> Optional[str]:
    """Get the account's legacy proxy.

    Args:
        account: Account address
        registry: Proxy registry lookup
        legacy_proxy_registry_address: Address of the legacy registry

    Returns:
        Checksummed proxy address, or None if the account has no proxy
    """
    if not legacy_proxy_registry_address:
        return None

    proxy = await registry.get_proxy(account, legacy_proxy_registry_address)
    if not proxy or proxy.lower() == ZERO_ADDRESS:
        return None
    return to_checksum_address(proxy)


async def get_nonce(offerer: str, zone: str, contract: ConsiderationContract) -> int:
    """Get the current on-chain nonce for an offerer and zone."""
    return int(await contract.get_nonce(offerer, zone))


async def get_order_status(order_hash: str, contract: ConsiderationContract) -> OrderStatus:
    """Get the on-chain validation, cancellation and fill status of an order."""
    is_validated, is_cancelled, total_filled, total_size = await contract.get_order_status(
        order_hash
    )
    return OrderStatus(
        is_validated=bool(is_validated),
        is_cancelled=bool(is_cancelled),
        total_filled=int(total_filled),
        total_size=int(total_size),
    )
