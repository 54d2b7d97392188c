"""Order Types for the Consideration exchange.

Data records exchanged between the order helpers, the contract and the
caller. Records that are hashed or signed are frozen.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, Literal, Optional, TypedDict, Union


class ItemType(IntEnum):
    """Asset class of an offer or consideration item."""

    NATIVE = 0
    ERC20 = 1
    ERC721 = 2
    ERC1155 = 3
    ERC721_WITH_CRITERIA = 4
    ERC1155_WITH_CRITERIA = 5


class OrderType(IntEnum):
    """Protocol-level order type code."""

    FULL_OPEN = 0
    PARTIAL_OPEN = 1
    FULL_RESTRICTED = 2
    PARTIAL_RESTRICTED = 3
    FULL_OPEN_VIA_PROXY = 4
    PARTIAL_OPEN_VIA_PROXY = 5
    FULL_RESTRICTED_VIA_PROXY = 6
    PARTIAL_RESTRICTED_VIA_PROXY = 7


PARTIAL_ORDER_TYPES = frozenset(
    {
        OrderType.PARTIAL_OPEN,
        OrderType.PARTIAL_RESTRICTED,
        OrderType.PARTIAL_OPEN_VIA_PROXY,
        OrderType.PARTIAL_RESTRICTED_VIA_PROXY,
    }
)

PROXY_ORDER_TYPES = frozenset(
    {
        OrderType.FULL_OPEN_VIA_PROXY,
        OrderType.PARTIAL_OPEN_VIA_PROXY,
        OrderType.FULL_RESTRICTED_VIA_PROXY,
        OrderType.PARTIAL_RESTRICTED_VIA_PROXY,
    }
)


class ProxyStrategy(str, Enum):
    """When to route transfers through the account's legacy proxy."""

    NEVER = "NEVER"
    ALWAYS = "ALWAYS"
    IF_ZERO_APPROVALS_NEEDED = "IF_ZERO_APPROVALS_NEEDED"


class BasicOrderRoute(IntEnum):
    """Route taken by the basic fulfillment entry point."""

    ETH_TO_ERC721 = 0
    ETH_TO_ERC1155 = 1
    ERC20_TO_ERC721 = 2
    ERC20_TO_ERC1155 = 3
    ERC721_TO_ERC20 = 4
    ERC1155_TO_ERC20 = 5


class CreateInputItem(TypedDict, total=False):
    """Item as supplied by the caller of create_order."""

    item_type: ItemType
    """Defaults to NATIVE when no token is given, ERC20 otherwise."""

    token: str
    """Token address. Omit for native currency."""

    identifier_or_criteria: int
    """Token ID (NFTs) or criteria root. Default: 0"""

    amount: int
    """Start amount. Default: 1"""

    end_amount: int
    """End amount for ascending/descending items. Default: amount"""

    recipient: str
    """Consideration recipient. Default: the offerer"""


@dataclass(frozen=True)
class OfferItem:
    """An item supplied by the offerer."""

    item_type: ItemType
    token: str
    identifier_or_criteria: int
    start_amount: int
    end_amount: int


@dataclass(frozen=True)
class ConsiderationItem(OfferItem):
    """An item owed to a recipient when the order is fulfilled."""

    recipient: str


Item = Union[OfferItem, ConsiderationItem]


@dataclass(frozen=True)
class OrderParameters:
    """Signable order parameters, without the nonce."""

    offerer: str
    zone: str
    order_type: OrderType
    start_time: int
    end_time: int
    offer: List[OfferItem]
    consideration: List[ConsiderationItem]
    salt: int

    def to_components(self, nonce: int) -> "OrderComponents":
        return OrderComponents(
            offerer=self.offerer,
            zone=self.zone,
            order_type=self.order_type,
            start_time=self.start_time,
            end_time=self.end_time,
            offer=self.offer,
            consideration=self.consideration,
            salt=self.salt,
            nonce=nonce,
        )


@dataclass(frozen=True)
class OrderComponents(OrderParameters):
    """Order parameters plus the offerer/zone nonce. This is what gets hashed."""

    nonce: int


@dataclass(frozen=True)
class Order:
    """A signed order. A signature of "0x" means it was validated on-chain."""

    parameters: OrderParameters
    signature: str


@dataclass(frozen=True)
class CreatedOrder:
    """Result of the create action of a create_order use case."""

    parameters: OrderParameters
    nonce: int
    signature: str

    def to_order(self) -> Order:
        return Order(parameters=self.parameters, signature=self.signature)


@dataclass(frozen=True)
class AdvancedOrder:
    """Order with the fraction being filled, for the standard path."""

    parameters: OrderParameters
    numerator: int
    denominator: int
    signature: str


@dataclass(frozen=True)
class Fee:
    """Fee taken out of the currency amounts of an order."""

    recipient: str
    basis_points: int


@dataclass(frozen=True)
class BalanceAndApproval:
    """Balance and allowances of one (token, identifier) for one account."""

    token: str
    identifier_or_criteria: int
    balance: int
    owner_approved_amount: int
    proxy_approved_amount: int
    item_type: ItemType


@dataclass(frozen=True)
class InsufficientBalance:
    """A balance that falls short of the summed required amount."""

    token: str
    identifier_or_criteria: int
    required_amount: int
    amount_have: int
    item_type: ItemType


@dataclass(frozen=True)
class InsufficientApproval:
    """An allowance that falls short, with the operator that needs approving."""

    token: str
    identifier_or_criteria: int
    approved_amount: int
    required_approved_amount: int
    operator: str
    item_type: ItemType


@dataclass(frozen=True)
class TimeBasedItemParams:
    """Inputs needed to compute an item's amount at fulfillment time."""

    start_time: int
    end_time: int
    current_block_timestamp: int
    ascending_amount_timestamp_buffer: int


@dataclass(frozen=True)
class OrderStatus:
    """On-chain status of an order. total_size == 0 means nothing filled yet."""

    is_validated: bool
    is_cancelled: bool
    total_filled: int
    total_size: int


@dataclass(frozen=True)
class AdditionalRecipient:
    amount: int
    recipient: str


@dataclass(frozen=True)
class BasicOrderParameters:
    """Arguments of the basic fulfillment entry point."""

    route: BasicOrderRoute
    consideration_token: str
    consideration_identifier: int
    consideration_amount: int
    offerer: str
    zone: str
    offer_token: str
    offer_identifier: int
    offer_amount: int
    order_type: OrderType
    start_time: int
    end_time: int
    salt: int
    use_fulfiller_proxy: bool
    signature: str
    additional_recipients: List[AdditionalRecipient]


@dataclass(frozen=True)
class ApprovalAction:
    """Approve an operator to move a token on the account's behalf."""

    token: str
    item_type: ItemType
    identifier_or_criteria: int
    operator: str
    amount: int
    type: Literal["approval"] = "approval"


@dataclass(frozen=True)
class CreateOrderAction:
    """Sign the fee-adjusted order parameters under the resolved nonce."""

    parameters: OrderParameters
    nonce: int
    account_address: Optional[str] = None
    type: Literal["create"] = "create"


ExchangeMethod = Literal["fulfill_basic_order", "fulfill_order", "fulfill_advanced_order"]


@dataclass(frozen=True)
class ExchangeAction:
    """Submit a fulfillment through one of the contract's entry points."""

    method: ExchangeMethod
    payload: Union[BasicOrderParameters, Order, AdvancedOrder]
    value: int = 0
    use_fulfiller_proxy: bool = False
    type: Literal["exchange"] = "exchange"


Action = Union[ApprovalAction, CreateOrderAction, ExchangeAction]


# EIP-712 types for order components
EIP_712_ORDER_TYPE = {
    "OrderComponents": [
        {"name": "offerer", "type": "address"},
        {"name": "zone", "type": "address"},
        {"name": "offer", "type": "OfferItem[]"},
        {"name": "consideration", "type": "ConsiderationItem[]"},
        {"name": "orderType", "type": "uint8"},
        {"name": "startTime", "type": "uint256"},
        {"name": "endTime", "type": "uint256"},
        {"name": "salt", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
    ],
    "OfferItem": [
        {"name": "itemType", "type": "uint8"},
        {"name": "token", "type": "address"},
        {"name": "identifierOrCriteria", "type": "uint256"},
        {"name": "startAmount", "type": "uint256"},
        {"name": "endAmount", "type": "uint256"},
    ],
    "ConsiderationItem": [
        {"name": "itemType", "type": "uint8"},
        {"name": "token", "type": "address"},
        {"name": "identifierOrCriteria", "type": "uint256"},
        {"name": "startAmount", "type": "uint256"},
        {"name": "endAmount", "type": "uint256"},
        {"name": "recipient", "type": "address"},
    ],
}
