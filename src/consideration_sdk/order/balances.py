"""Balance and approval reconciliation.

Required amounts are summed per (token, identifier) first, then compared
against the balance and against each approval target independently. The
proxy decision is made afterwards from both shortfalls.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import structlog

from ..errors import (
    InsufficientApprovalsError,
    InsufficientBalancesError,
    ProxyUnavailableError,
)
from .item import (
    TokenAndIdentifierAmounts,
    get_summed_token_and_identifier_amounts,
    is_native_currency_item,
)
from .options import use_proxy_from_approvals
from .types import (
    PROXY_ORDER_TYPES,
    BalanceAndApproval,
    ConsiderationItem,
    InsufficientApproval,
    InsufficientBalance,
    Item,
    OfferItem,
    OrderType,
    ProxyStrategy,
    TimeBasedItemParams,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class InsufficientAmounts:
    """Shortfalls of one account against a set of required items."""

    insufficient_balances: List[InsufficientBalance]
    insufficient_owner_approvals: List[InsufficientApproval]
    insufficient_proxy_approvals: List[InsufficientApproval]


def _find_balance(
    balances_and_approvals: Sequence[BalanceAndApproval], token: str, identifier: int
) -> Optional[BalanceAndApproval]:
    for balance in balances_and_approvals:
        if balance.token.lower() == token and balance.identifier_or_criteria == identifier:
            return balance
    return None


def get_insufficient_balance_and_approval_amounts(
    balances_and_approvals: Sequence[BalanceAndApproval],
    token_and_identifier_amounts: TokenAndIdentifierAmounts,
    contract_address: str,
    proxy: Optional[str],
) -> InsufficientAmounts:
    """Compare summed required amounts against balances and allowances.

    A missing proxy is treated as having no allowance for anything.

    Args:
        balances_and_approvals: Snapshot from the balance reader
        token_and_identifier_amounts: Output of get_summed_token_and_identifier_amounts
        contract_address: Operator for direct (owner) approvals
        proxy: The account's proxy, if registered

    Returns:
        Insufficient balances, owner approvals and proxy approvals
    """
    insufficient_balances: List[InsufficientBalance] = []
    insufficient_owner_approvals: List[InsufficientApproval] = []
    insufficient_proxy_approvals: List[InsufficientApproval] = []

    for token, identifier_amounts in token_and_identifier_amounts.items():
        for identifier, amount_needed in identifier_amounts.items():
            balance = _find_balance(balances_and_approvals, token, identifier)
            if balance is None:
                raise ValueError(f"Invalid balances: no entry for {token} #{identifier}")

            if balance.balance < amount_needed:
                insufficient_balances.append(
                    InsufficientBalance(
                        token=balance.token,
                        identifier_or_criteria=identifier,
                        required_amount=amount_needed,
                        amount_have=balance.balance,
                        item_type=balance.item_type,
                    )
                )

            if balance.owner_approved_amount < amount_needed:
                insufficient_owner_approvals.append(
                    InsufficientApproval(
                        token=balance.token,
                        identifier_or_criteria=identifier,
                        approved_amount=balance.owner_approved_amount,
                        required_approved_amount=amount_needed,
                        operator=contract_address,
                        item_type=balance.item_type,
                    )
                )

            proxy_approved_amount = balance.proxy_approved_amount if proxy else 0
            if proxy_approved_amount < amount_needed:
                insufficient_proxy_approvals.append(
                    InsufficientApproval(
                        token=balance.token,
                        identifier_or_criteria=identifier,
                        approved_amount=proxy_approved_amount,
                        required_approved_amount=amount_needed,
                        operator=proxy or "",
                        item_type=balance.item_type,
                    )
                )

    return InsufficientAmounts(
        insufficient_balances=insufficient_balances,
        insufficient_owner_approvals=insufficient_owner_approvals,
        insufficient_proxy_approvals=insufficient_proxy_approvals,
    )


def select_approvals(
    amounts: InsufficientAmounts,
    proxy: Optional[str],
    proxy_strategy: ProxyStrategy,
) -> Tuple[bool, List[InsufficientApproval]]:
    """Pick the transfer path and the approvals it still needs.

    Returns:
        (use_proxy, approvals needed on the chosen path)

    Raises:
        ProxyUnavailableError: If the proxy path is chosen but none is registered
    """
    use_proxy = use_proxy_from_approvals(
        amounts.insufficient_owner_approvals,
        amounts.insufficient_proxy_approvals,
        proxy_strategy,
    )
    if use_proxy and not proxy:
        raise ProxyUnavailableError(
            f"Proxy strategy {proxy_strategy.value} requires a proxy but none is registered"
        )

    logger.debug(
        "proxy_usage_selected",
        proxy_strategy=proxy_strategy.value,
        use_proxy=use_proxy,
        owner_shortfalls=len(amounts.insufficient_owner_approvals),
        proxy_shortfalls=len(amounts.insufficient_proxy_approvals),
    )

    if use_proxy:
        return True, amounts.insufficient_proxy_approvals
    return False, amounts.insufficient_owner_approvals


def validate_offer_balances_and_approvals(
    offer: Sequence[OfferItem],
    balances_and_approvals: Sequence[BalanceAndApproval],
    contract_address: str,
    proxy: Optional[str],
    proxy_strategy: ProxyStrategy,
    throw_on_insufficient_balances: bool = True,
    time_based_item_params: Optional[TimeBasedItemParams] = None,
) -> Tuple[bool, List[InsufficientApproval]]:
    """Check that the offerer can fund an offer.

    Args:
        offer: Offer items as they will be signed (after fees)
        balances_and_approvals: Offerer's snapshot
        contract_address: Consideration contract address
        proxy: Offerer's proxy, if registered
        proxy_strategy: Configured proxy strategy
        throw_on_insufficient_balances: Raise if the offerer lacks a balance
        time_based_item_params: Use present amounts instead of the maximum

    Returns:
        (use_proxy, approvals the offerer still needs to grant)

    Raises:
        InsufficientBalancesError: If balances fall short and checks are on
    """
    amounts = get_insufficient_balance_and_approval_amounts(
        balances_and_approvals,
        get_summed_token_and_identifier_amounts(offer, time_based_item_params),
        contract_address,
        proxy,
    )

    if throw_on_insufficient_balances and amounts.insufficient_balances:
        raise InsufficientBalancesError(
            "The offerer does not have the amount needed to create or fulfill.",
            amounts.insufficient_balances,
        )

    return select_approvals(amounts, proxy, proxy_strategy)


def _credit_balances(
    balances_and_approvals: Sequence[BalanceAndApproval],
    received: TokenAndIdentifierAmounts,
) -> List[BalanceAndApproval]:
    return [
        replace(
            balance,
            balance=balance.balance
            + received.get(balance.token.lower(), {}).get(balance.identifier_or_criteria, 0),
        )
        for balance in balances_and_approvals
    ]


def validate_fulfill_balances_and_approvals(
    offer: Sequence[OfferItem],
    consideration: Sequence[ConsiderationItem],
    offerer_balances_and_approvals: Sequence[BalanceAndApproval],
    fulfiller_balances_and_approvals: Sequence[BalanceAndApproval],
    time_based_item_params: TimeBasedItemParams,
    contract_address: str,
    offerer_proxy: Optional[str],
    fulfiller_proxy: Optional[str],
    proxy_strategy: ProxyStrategy,
    order_type: OrderType,
    throw_on_insufficient_balances: bool = True,
    fulfill_basic: bool = False,
) -> Tuple[bool, List[InsufficientApproval]]:
    """Check both parties of a fulfillment.

    The offerer must still hold the offer and have approved it on the path
    its order type names. The fulfiller must hold the consideration it pays;
    native currency is sent as value and needs no approval.

    On the basic path, consideration items of the offer's item type are
    paid by the offerer out of the offer, so the fulfiller is not charged
    for them. On the standard path the offer is transferred to the
    fulfiller first, so it counts towards the fulfiller's balance.

    Returns:
        (use_fulfiller_proxy, approvals the fulfiller still needs to grant)

    Raises:
        InsufficientBalancesError: If either party falls short and checks are on
        InsufficientApprovalsError: If the offerer's allowances fall short and checks are on
    """
    offer_amounts = get_summed_token_and_identifier_amounts(offer, time_based_item_params)

    if throw_on_insufficient_balances:
        offerer_amounts = get_insufficient_balance_and_approval_amounts(
            offerer_balances_and_approvals,
            offer_amounts,
            contract_address,
            offerer_proxy,
        )
        if offerer_amounts.insufficient_balances:
            raise InsufficientBalancesError(
                "The offerer does not have the amount needed to create or fulfill.",
                offerer_amounts.insufficient_balances,
            )

        if order_type in PROXY_ORDER_TYPES:
            offerer_approvals = offerer_amounts.insufficient_proxy_approvals
        else:
            offerer_approvals = offerer_amounts.insufficient_owner_approvals
        if offerer_approvals:
            raise InsufficientApprovalsError(
                "The offerer does not have the sufficient approvals.",
                offerer_approvals,
            )

    if fulfill_basic:
        offer_item_type = offer[0].item_type
        fulfiller_items: List[Item] = [
            item for item in consideration if item.item_type != offer_item_type
        ]
        fulfiller_balances = list(fulfiller_balances_and_approvals)
    else:
        fulfiller_items = list(consideration)
        fulfiller_balances = _credit_balances(fulfiller_balances_and_approvals, offer_amounts)

    fulfiller_amounts = get_insufficient_balance_and_approval_amounts(
        fulfiller_balances,
        get_summed_token_and_identifier_amounts(fulfiller_items, time_based_item_params),
        contract_address,
        fulfiller_proxy,
    )

    if throw_on_insufficient_balances and fulfiller_amounts.insufficient_balances:
        raise InsufficientBalancesError(
            "The fulfiller does not have the balances needed to fulfill.",
            fulfiller_amounts.insufficient_balances,
        )

    native_tokens = {item.token.lower() for item in fulfiller_items if is_native_currency_item(item)}

    def needs_approval(approval: InsufficientApproval) -> bool:
        return approval.token.lower() not in native_tokens

    amounts = InsufficientAmounts(
        insufficient_balances=fulfiller_amounts.insufficient_balances,
        insufficient_owner_approvals=[
            a for a in fulfiller_amounts.insufficient_owner_approvals if needs_approval(a)
        ],
        insufficient_proxy_approvals=[
            a for a in fulfiller_amounts.insufficient_proxy_approvals if needs_approval(a)
        ],
    )
    return select_approvals(amounts, fulfiller_proxy, proxy_strategy)
