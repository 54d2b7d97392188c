"""Consideration Order Module.

This module provides the building blocks for Consideration orders.

Key components:
- Order types, item math and the order type table
- Fee injection with exact value conservation
- Balance/approval reconciliation and approval actions
- Order hashing and signing (EIP-712, EIP-2098 compact signatures)
- Basic and standard fulfillment planning
- The action pipeline that runs a use case in order

Example usage:
    ```python
    from consideration_sdk.order import (
        Fee,
        ItemType,
        OfferItem,
        ConsiderationItem,
        apply_fees,
        create_eip712_domain,
        get_order_hash,
        sign_order,
    )

    offer = [OfferItem(ItemType.ERC721, nft, 1, 1, 1)]
    consideration = [ConsiderationItem(ItemType.NATIVE, ZERO_ADDRESS, 0, 10**18, 10**18, seller)]

    # 2.5% marketplace fee taken out of the seller's proceeds
    offer, consideration = apply_fees(offer, consideration, [Fee(marketplace, 250)])

    domain = create_eip712_domain(contract_address, chain_id=1)
    signature = sign_order(private_key, domain, parameters.to_components(nonce))
    order_hash = get_order_hash(parameters.to_components(nonce))
    ```
"""

from .types import (
    PARTIAL_ORDER_TYPES,
    PROXY_ORDER_TYPES,
    Action,
    AdditionalRecipient,
    AdvancedOrder,
    ApprovalAction,
    BalanceAndApproval,
    BasicOrderParameters,
    BasicOrderRoute,
    ConsiderationItem,
    CreatedOrder,
    CreateInputItem,
    CreateOrderAction,
    EIP_712_ORDER_TYPE,
    ExchangeAction,
    Fee,
    InsufficientApproval,
    InsufficientBalance,
    Item,
    ItemType,
    OfferItem,
    Order,
    OrderComponents,
    OrderParameters,
    OrderStatus,
    OrderType,
    ProxyStrategy,
    TimeBasedItemParams,
)
from .utils import (
    BASIS_POINTS_DENOMINATOR,
    CONSIDERATION_CONTRACT_NAME,
    CONSIDERATION_CONTRACT_VERSION,
    MAX_INT,
    NO_SIGNATURE,
    ZERO_ADDRESS,
    format_bps,
    gather_reads,
    generate_random_salt,
    multiply_basis_points,
)
from .item import (
    get_maximum_size_for_order,
    get_present_item_amount,
    get_summed_token_and_identifier_amounts,
    is_currency_item,
    map_input_item_to_consideration_item,
    map_input_item_to_offer_item,
    map_order_amounts_from_units_to_fill,
)
from .fees import apply_fees, deduct_fees, fee_to_consideration_item
from .options import (
    ORDER_OPTIONS_TO_ORDER_TYPE,
    get_order_type_from_options,
    use_proxy_from_approvals,
)
from .hashing import get_order_hash
from .signing import (
    EIP712Domain,
    Signer,
    compact_signature,
    create_eip712_domain,
    expand_compact_signature,
    recover_order_signer,
    sign_order,
    sign_order_with_signer,
    verify_order_signature,
)
from .chain import (
    BalanceReader,
    ChainProvider,
    ConsiderationContract,
    ProxyRegistry,
    get_nonce,
    get_order_status,
    get_proxy,
)
from .balances import (
    InsufficientAmounts,
    get_insufficient_balance_and_approval_amounts,
    validate_fulfill_balances_and_approvals,
    validate_offer_balances_and_approvals,
)
from .approval import encode_approval_transaction, get_approval_actions
from .usecase import ActionRunner, OrderUseCase, execute_all_actions
from .fulfill import (
    FulfillContext,
    fulfill_basic_order,
    fulfill_standard_order,
    should_use_basic_fulfill,
)

__all__ = [
    # Types
    "Action",
    "AdditionalRecipient",
    "AdvancedOrder",
    "ApprovalAction",
    "BalanceAndApproval",
    "BasicOrderParameters",
    "BasicOrderRoute",
    "ConsiderationItem",
    "CreatedOrder",
    "CreateInputItem",
    "CreateOrderAction",
    "EIP_712_ORDER_TYPE",
    "ExchangeAction",
    "Fee",
    "InsufficientApproval",
    "InsufficientBalance",
    "Item",
    "ItemType",
    "OfferItem",
    "Order",
    "OrderComponents",
    "OrderParameters",
    "OrderStatus",
    "OrderType",
    "PARTIAL_ORDER_TYPES",
    "PROXY_ORDER_TYPES",
    "ProxyStrategy",
    "TimeBasedItemParams",
    # Utils
    "BASIS_POINTS_DENOMINATOR",
    "CONSIDERATION_CONTRACT_NAME",
    "CONSIDERATION_CONTRACT_VERSION",
    "MAX_INT",
    "NO_SIGNATURE",
    "ZERO_ADDRESS",
    "format_bps",
    "gather_reads",
    "generate_random_salt",
    "multiply_basis_points",
    # Items
    "get_maximum_size_for_order",
    "get_present_item_amount",
    "get_summed_token_and_identifier_amounts",
    "is_currency_item",
    "map_input_item_to_consideration_item",
    "map_input_item_to_offer_item",
    "map_order_amounts_from_units_to_fill",
    # Fees
    "apply_fees",
    "deduct_fees",
    "fee_to_consideration_item",
    # Options
    "ORDER_OPTIONS_TO_ORDER_TYPE",
    "get_order_type_from_options",
    "use_proxy_from_approvals",
    # Hashing and signing
    "get_order_hash",
    "EIP712Domain",
    "Signer",
    "compact_signature",
    "create_eip712_domain",
    "expand_compact_signature",
    "recover_order_signer",
    "sign_order",
    "sign_order_with_signer",
    "verify_order_signature",
    # Chain
    "BalanceReader",
    "ChainProvider",
    "ConsiderationContract",
    "ProxyRegistry",
    "get_nonce",
    "get_order_status",
    "get_proxy",
    # Balances and approvals
    "InsufficientAmounts",
    "get_insufficient_balance_and_approval_amounts",
    "validate_fulfill_balances_and_approvals",
    "validate_offer_balances_and_approvals",
    "encode_approval_transaction",
    "get_approval_actions",
    # Pipeline and fulfillment
    "ActionRunner",
    "OrderUseCase",
    "execute_all_actions",
    "FulfillContext",
    "fulfill_basic_order",
    "fulfill_standard_order",
    "should_use_basic_fulfill",
]
