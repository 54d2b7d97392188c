"""Consideration SDK.

Client-side orchestration for creating, signing and fulfilling orders on
the Consideration exchange contract.
"""

from .consideration import (
    Consideration,
    ConsiderationConfig,
    ConsiderationOverrides,
    CreateOrderInput,
    ResolvedConsiderationConfig,
)
from .errors import (
    ConsiderationError,
    InsufficientApprovalsError,
    InsufficientBalancesError,
    OrderCancelledError,
    ProxyUnavailableError,
    UnknownOrderTypeError,
)
from .order import (
    ConsiderationItem,
    CreatedOrder,
    Fee,
    ItemType,
    MAX_INT,
    NO_SIGNATURE,
    OfferItem,
    Order,
    OrderComponents,
    OrderParameters,
    OrderType,
    OrderUseCase,
    ProxyStrategy,
    ZERO_ADDRESS,
    get_maximum_size_for_order,
    get_order_hash,
)

__all__ = [
    "Consideration",
    "ConsiderationConfig",
    "ConsiderationOverrides",
    "CreateOrderInput",
    "ResolvedConsiderationConfig",
    # Errors
    "ConsiderationError",
    "InsufficientApprovalsError",
    "InsufficientBalancesError",
    "OrderCancelledError",
    "ProxyUnavailableError",
    "UnknownOrderTypeError",
    # Order types
    "ConsiderationItem",
    "CreatedOrder",
    "Fee",
    "ItemType",
    "MAX_INT",
    "NO_SIGNATURE",
    "OfferItem",
    "Order",
    "OrderComponents",
    "OrderParameters",
    "OrderType",
    "OrderUseCase",
    "ProxyStrategy",
    "ZERO_ADDRESS",
    "get_maximum_size_for_order",
    "get_order_hash",
]
