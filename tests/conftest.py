"""Shared fixtures: in-memory stand-ins for the chain collaborators."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from eth_account import Account
from eth_utils import to_checksum_address, to_hex

from consideration_sdk import Consideration
from consideration_sdk.order import (
    BalanceAndApproval,
    Item,
    ItemType,
    ZERO_ADDRESS,
)

# Test wallets (DO NOT use in production)
OFFERER_KEY = "0x" + "ab" * 32
FULFILLER_KEY = "0x" + "cd" * 32
OFFERER = Account.from_key(OFFERER_KEY).address
FULFILLER = Account.from_key(FULFILLER_KEY).address

CONTRACT_ADDRESS = to_checksum_address("0x" + "33" * 20)
NFT = to_checksum_address("0x" + "11" * 20)
ERC20 = to_checksum_address("0x" + "22" * 20)
PROXY = to_checksum_address("0x" + "44" * 20)
REGISTRY = to_checksum_address("0x" + "55" * 20)
FEE_RECIPIENT = to_checksum_address("0x" + "66" * 20)

CHAIN_ID = 1
BLOCK_TIMESTAMP = 1_700_000_000


class LocalSigner:
    """Signer backed by a local key. Records every submitted transaction."""

    def __init__(self, private_key: str, events: List[Tuple[str, Any]]):
        self.account = Account.from_key(private_key)
        self.events = events
        self.transactions: List[Dict[str, Any]] = []

    async def get_address(self) -> str:
        return self.account.address

    async def sign_typed_data(self, params: Dict[str, Any]) -> str:
        signed = self.account.sign_typed_data(
            domain_data=dict(params["domain"]),
            message_types=params["types"],
            message_data=params["message"],
        )
        return to_hex(signed.signature)

    async def send_transaction(self, transaction: Dict[str, Any]) -> Dict[str, Any]:
        self.transactions.append(transaction)
        self.events.append(("transaction", transaction))
        return {"status": 1, "to": transaction["to"]}


class FakeProvider:
    def __init__(self, signers: Dict[str, LocalSigner], default: str):
        self.signers = {address.lower(): signer for address, signer in signers.items()}
        self.default = default
        self.calls: List[str] = []

    def get_signer(self, account_address: Optional[str] = None) -> LocalSigner:
        return self.signers[(account_address or self.default).lower()]

    async def get_chain_id(self) -> int:
        return CHAIN_ID

    async def get_block_number(self) -> int:
        self.calls.append("get_block_number")
        return 100

    async def get_block_timestamp(self, block_number: int) -> int:
        self.calls.append("get_block_timestamp")
        return BLOCK_TIMESTAMP


class FakeContract:
    def __init__(self, events: List[Tuple[str, Any]]):
        self.address = CONTRACT_ADDRESS
        self.events = events
        self.nonces: Dict[Tuple[str, str], int] = {}
        self.statuses: Dict[str, Tuple[bool, bool, int, int]] = {}
        self.calls: List[Tuple[str, Any]] = []

    async def get_nonce(self, offerer: str, zone: str) -> int:
        self.calls.append(("get_nonce", (offerer, zone)))
        return self.nonces.get((offerer.lower(), zone.lower()), 0)

    async def get_order_status(self, order_hash: str) -> Tuple[bool, bool, int, int]:
        self.calls.append(("get_order_status", order_hash))
        return self.statuses.get(order_hash, (False, False, 0, 0))

    async def cancel(self, orders, signer) -> Dict[str, Any]:
        self.calls.append(("cancel", orders))
        return {"method": "cancel", "orders": orders}

    async def increment_nonce(self, offerer: str, zone: str, signer) -> Dict[str, Any]:
        self.calls.append(("increment_nonce", (offerer, zone)))
        key = (offerer.lower(), zone.lower())
        self.nonces[key] = self.nonces.get(key, 0) + 1
        return {"method": "increment_nonce"}

    async def validate(self, orders, signer) -> Dict[str, Any]:
        self.calls.append(("validate", orders))
        return {"method": "validate", "orders": orders}

    async def fulfill_basic_order(self, parameters, signer, value: int = 0) -> Dict[str, Any]:
        self.events.append(("fulfill_basic_order", parameters))
        return {"method": "fulfill_basic_order", "value": value}

    async def fulfill_order(self, order, use_fulfiller_proxy, signer, value: int = 0):
        self.events.append(("fulfill_order", order))
        return {"method": "fulfill_order", "value": value}

    async def fulfill_advanced_order(self, order, use_fulfiller_proxy, signer, value: int = 0):
        self.events.append(("fulfill_advanced_order", order))
        return {"method": "fulfill_advanced_order", "value": value}


class FakeProxyRegistry:
    def __init__(self):
        self.proxies: Dict[str, str] = {}

    async def get_proxy(self, account: str, legacy_proxy_registry_address: str) -> Optional[str]:
        return self.proxies.get(account.lower(), ZERO_ADDRESS)


class FakeBalanceReader:
    """Returns configured balances, and zeros for anything not configured."""

    def __init__(self):
        self.balances: Dict[Tuple[str, str, int], Tuple[int, int, int]] = {}
        self.calls: List[Tuple[str, Sequence[Item], Optional[str]]] = []

    def set(
        self,
        owner: str,
        token: str,
        identifier: int = 0,
        balance: int = 0,
        owner_approved: int = 0,
        proxy_approved: int = 0,
    ) -> None:
        self.balances[(owner.lower(), token.lower(), identifier)] = (
            balance,
            owner_approved,
            proxy_approved,
        )

    async def get_balances_and_approvals(
        self, owner: str, items: Sequence[Item], proxy: Optional[str]
    ) -> List[BalanceAndApproval]:
        self.calls.append((owner, items, proxy))
        result = []
        for item in items:
            balance, owner_approved, proxy_approved = self.balances.get(
                (owner.lower(), item.token.lower(), item.identifier_or_criteria), (0, 0, 0)
            )
            result.append(
                BalanceAndApproval(
                    token=item.token,
                    identifier_or_criteria=item.identifier_or_criteria,
                    balance=balance,
                    owner_approved_amount=owner_approved,
                    proxy_approved_amount=proxy_approved,
                    item_type=ItemType(item.item_type),
                )
            )
        return result


@pytest.fixture
def events() -> List[Tuple[str, Any]]:
    return []


@pytest.fixture
def offerer_signer(events) -> LocalSigner:
    return LocalSigner(OFFERER_KEY, events)


@pytest.fixture
def fulfiller_signer(events) -> LocalSigner:
    return LocalSigner(FULFILLER_KEY, events)


@pytest.fixture
def provider(offerer_signer, fulfiller_signer) -> FakeProvider:
    return FakeProvider({OFFERER: offerer_signer, FULFILLER: fulfiller_signer}, default=OFFERER)


@pytest.fixture
def contract(events) -> FakeContract:
    return FakeContract(events)


@pytest.fixture
def proxy_registry() -> FakeProxyRegistry:
    return FakeProxyRegistry()


@pytest.fixture
def balance_reader() -> FakeBalanceReader:
    return FakeBalanceReader()


@pytest.fixture
def make_consideration(provider, contract, proxy_registry, balance_reader):
    def factory(**config) -> Consideration:
        config.setdefault("overrides", {"legacy_proxy_registry_address": REGISTRY})
        return Consideration(provider, contract, proxy_registry, balance_reader, config)

    return factory
