"""Fulfillment strategies.

Basic fulfillment is a cheaper entry point that only handles one NFT
traded against a single currency. Everything else, including partial
fills, goes through the standard entry points.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import structlog

from .approval import get_approval_actions
from .balances import validate_fulfill_balances_and_approvals
from .chain import ConsiderationContract
from .item import (
    get_maximum_size_for_order,
    get_present_item_amount,
    get_remaining_units,
    is_criteria_item,
    is_currency_item,
    is_native_currency_item,
    is_nft_item,
    map_order_amounts_from_units_to_fill,
)
from .types import (
    PARTIAL_ORDER_TYPES,
    Action,
    AdditionalRecipient,
    AdvancedOrder,
    BalanceAndApproval,
    BasicOrderParameters,
    BasicOrderRoute,
    ConsiderationItem,
    ExchangeAction,
    ItemType,
    Order,
    OrderParameters,
    ProxyStrategy,
    TimeBasedItemParams,
)
from .usecase import ActionRunner, OrderUseCase
from .utils import is_same_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class FulfillContext:
    """Data shared by both fulfillment paths."""

    contract: ConsiderationContract
    offerer_balances_and_approvals: Sequence[BalanceAndApproval]
    fulfiller_balances_and_approvals: Sequence[BalanceAndApproval]
    time_based_item_params: TimeBasedItemParams
    offerer_proxy: Optional[str]
    fulfiller_proxy: Optional[str]
    proxy_strategy: ProxyStrategy
    runner: ActionRunner
    approve_exact_amount: bool = False
    check_balances: bool = True


def should_use_basic_fulfill(
    parameters: OrderParameters,
    total_filled: int,
    units_to_fill: Optional[int] = None,
) -> bool:
    """Decide whether an order can go through basic fulfillment.

    Args:
        parameters: Order parameters
        total_filled: Units already filled on-chain
        units_to_fill: Units requested by the fulfiller, if any

    Returns:
        True if the basic path applies
    """
    offer, consideration = parameters.offer, parameters.consideration

    # Partially filled orders can only be completed with the standard path
    if total_filled != 0:
        return False

    if units_to_fill is not None and units_to_fill < get_maximum_size_for_order(parameters):
        return False

    if len(offer) != 1 or not consideration:
        return False

    all_items = [*offer, *consideration]

    if any(is_criteria_item(item) for item in all_items):
        return False

    if is_native_currency_item(offer[0]):
        return False

    nfts = [item for item in all_items if is_nft_item(item)]
    if len(nfts) != 1:
        return False

    currencies = [item for item in all_items if is_currency_item(item)]
    if any(not is_same_address(item.token, currencies[0].token) for item in currencies):
        return False

    if any(item.start_amount != item.end_amount for item in all_items):
        return False

    first_consideration = consideration[0]
    if not is_same_address(first_consideration.recipient, parameters.offerer):
        return False

    # The NFT is either what's offered or what the offerer receives first
    return nfts[0] is offer[0] or nfts[0] is first_consideration


def get_basic_order_route(parameters: OrderParameters) -> BasicOrderRoute:
    offer_item = parameters.offer[0]
    first_consideration = parameters.consideration[0]

    if offer_item.item_type == ItemType.ERC721:
        if first_consideration.item_type == ItemType.NATIVE:
            return BasicOrderRoute.ETH_TO_ERC721
        return BasicOrderRoute.ERC20_TO_ERC721
    if offer_item.item_type == ItemType.ERC1155:
        if first_consideration.item_type == ItemType.NATIVE:
            return BasicOrderRoute.ETH_TO_ERC1155
        return BasicOrderRoute.ERC20_TO_ERC1155
    if first_consideration.item_type == ItemType.ERC721:
        return BasicOrderRoute.ERC721_TO_ERC20
    return BasicOrderRoute.ERC1155_TO_ERC20


def _native_value(
    consideration: Sequence[ConsiderationItem], params: TimeBasedItemParams
) -> int:
    return sum(
        get_present_item_amount(item.start_amount, item.end_amount, params)
        for item in consideration
        if is_native_currency_item(item)
    )


def _approval_actions(
    parameters: OrderParameters, context: FulfillContext, fulfill_basic: bool = False
):
    use_fulfiller_proxy, approvals = validate_fulfill_balances_and_approvals(
        offer=parameters.offer,
        consideration=parameters.consideration,
        offerer_balances_and_approvals=context.offerer_balances_and_approvals,
        fulfiller_balances_and_approvals=context.fulfiller_balances_and_approvals,
        time_based_item_params=context.time_based_item_params,
        contract_address=context.contract.address,
        offerer_proxy=context.offerer_proxy,
        fulfiller_proxy=context.fulfiller_proxy,
        proxy_strategy=context.proxy_strategy,
        order_type=parameters.order_type,
        throw_on_insufficient_balances=context.check_balances,
        fulfill_basic=fulfill_basic,
    )
    if not context.check_balances:
        return use_fulfiller_proxy, []
    return use_fulfiller_proxy, get_approval_actions(approvals, context.approve_exact_amount)


def fulfill_basic_order(order: Order, context: FulfillContext) -> OrderUseCase[Any]:
    """Plan a basic fulfillment.

    Args:
        order: Order that passed should_use_basic_fulfill
        context: Balances, time parameters and proxy settings

    Returns:
        Use case of approvals followed by the basic exchange action
    """
    parameters = order.parameters
    params = context.time_based_item_params
    offer_item = parameters.offer[0]
    first_consideration, *additional = parameters.consideration

    use_fulfiller_proxy, approval_actions = _approval_actions(
        parameters, context, fulfill_basic=True
    )

    basic_parameters = BasicOrderParameters(
        route=get_basic_order_route(parameters),
        consideration_token=first_consideration.token,
        consideration_identifier=first_consideration.identifier_or_criteria,
        consideration_amount=get_present_item_amount(
            first_consideration.start_amount, first_consideration.end_amount, params
        ),
        offerer=parameters.offerer,
        zone=parameters.zone,
        offer_token=offer_item.token,
        offer_identifier=offer_item.identifier_or_criteria,
        offer_amount=get_present_item_amount(
            offer_item.start_amount, offer_item.end_amount, params
        ),
        order_type=parameters.order_type,
        start_time=parameters.start_time,
        end_time=parameters.end_time,
        salt=parameters.salt,
        use_fulfiller_proxy=use_fulfiller_proxy,
        signature=order.signature,
        additional_recipients=[
            AdditionalRecipient(
                amount=get_present_item_amount(item.start_amount, item.end_amount, params),
                recipient=item.recipient,
            )
            for item in additional
        ],
    )

    exchange_action = ExchangeAction(
        method="fulfill_basic_order",
        payload=basic_parameters,
        value=_native_value(parameters.consideration, params),
        use_fulfiller_proxy=use_fulfiller_proxy,
    )

    logger.debug(
        "basic_fulfillment_planned",
        route=basic_parameters.route.name,
        approvals=len(approval_actions),
        value=exchange_action.value,
    )

    actions: List[Action] = [*approval_actions, exchange_action]
    return OrderUseCase(actions=actions, runner=context.runner)


def fulfill_standard_order(
    order: Order,
    units_to_fill: Optional[int],
    total_filled: int,
    total_size: int,
    context: FulfillContext,
) -> OrderUseCase[Any]:
    """Plan a standard fulfillment, optionally for a fraction of the order.

    Units are denominated against the order's maximum size (the GCD of all
    item amounts): filling u units of an order of size n fills u/n of every
    item. Requests above what remains are clamped.

    Args:
        order: Order to fulfill
        units_to_fill: Units to fill (default: everything that remains)
        total_filled: Units already filled on-chain
        total_size: Size the on-chain fills are denominated in (0 if none)
        context: Balances, time parameters and proxy settings

    Returns:
        Use case of approvals followed by the exchange action

    Raises:
        ValueError: If a partial fill is requested on a full-fill-only order
    """
    parameters = order.parameters
    max_units = get_maximum_size_for_order(parameters)
    is_partial = total_filled > 0 or (units_to_fill is not None and units_to_fill < max_units)

    if is_partial and parameters.order_type not in PARTIAL_ORDER_TYPES:
        raise ValueError(
            f"Invalid units_to_fill: order type {parameters.order_type.name} does not allow partial fills"
        )

    if is_partial:
        units = units_to_fill
        if units is None:
            units = get_remaining_units(max_units, total_filled, total_size)
        fill_parameters = map_order_amounts_from_units_to_fill(
            parameters, units, total_filled, total_size
        )
        units = min(units, get_remaining_units(max_units, total_filled, total_size))
    else:
        fill_parameters = parameters

    use_fulfiller_proxy, approval_actions = _approval_actions(fill_parameters, context)
    value = _native_value(fill_parameters.consideration, context.time_based_item_params)

    if is_partial:
        exchange_action = ExchangeAction(
            method="fulfill_advanced_order",
            payload=AdvancedOrder(
                parameters=parameters,
                numerator=units,
                denominator=max_units,
                signature=order.signature,
            ),
            value=value,
            use_fulfiller_proxy=use_fulfiller_proxy,
        )
    else:
        exchange_action = ExchangeAction(
            method="fulfill_order",
            payload=order,
            value=value,
            use_fulfiller_proxy=use_fulfiller_proxy,
        )

    logger.debug(
        "standard_fulfillment_planned",
        method=exchange_action.method,
        approvals=len(approval_actions),
        value=value,
    )

    actions: List[Action] = [*approval_actions, exchange_action]
    return OrderUseCase(actions=actions, runner=context.runner)
