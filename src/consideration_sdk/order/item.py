"""Item helpers: classification, input mapping and amount math."""

from dataclasses import replace
from math import gcd
from typing import Dict, List, Optional, Sequence

from eth_utils import is_address, to_checksum_address

from .types import (
    ConsiderationItem,
    CreateInputItem,
    Item,
    ItemType,
    OfferItem,
    OrderParameters,
    TimeBasedItemParams,
)
from .utils import ZERO_ADDRESS

TokenAndIdentifierAmounts = Dict[str, Dict[int, int]]


def is_currency_item(item: Item) -> bool:
    return item.item_type in (ItemType.NATIVE, ItemType.ERC20)


def is_native_currency_item(item: Item) -> bool:
    return item.item_type == ItemType.NATIVE


def is_nft_item(item: Item) -> bool:
    return item.item_type in (ItemType.ERC721, ItemType.ERC1155)


def is_criteria_item(item: Item) -> bool:
    return item.item_type in (
        ItemType.ERC721_WITH_CRITERIA,
        ItemType.ERC1155_WITH_CRITERIA,
    )


def map_input_item_to_offer_item(item: CreateInputItem) -> OfferItem:
    """Map a caller-supplied item to an offer item, filling in defaults.

    Args:
        item: Input item (token omitted means native currency)

    Returns:
        OfferItem with a checksummed token address

    Raises:
        ValueError: If the token address or amounts are invalid
    """
    token = item.get("token", ZERO_ADDRESS)
    if not is_address(token):
        raise ValueError(f"Invalid token address: {token}")

    item_type = item.get("item_type")
    if item_type is None:
        item_type = ItemType.NATIVE if token == ZERO_ADDRESS else ItemType.ERC20

    start_amount = int(item.get("amount", 1))
    end_amount = int(item.get("end_amount", start_amount))
    if start_amount < 0 or end_amount < 0:
        raise ValueError(f"Invalid amount: {start_amount} -> {end_amount}. Must be non-negative")

    return OfferItem(
        item_type=ItemType(item_type),
        token=to_checksum_address(token),
        identifier_or_criteria=int(item.get("identifier_or_criteria", 0)),
        start_amount=start_amount,
        end_amount=end_amount,
    )


def map_input_item_to_consideration_item(
    item: CreateInputItem, default_recipient: str
) -> ConsiderationItem:
    """Map a caller-supplied item to a consideration item.

    The recipient defaults to the offerer.
    """
    offer_item = map_input_item_to_offer_item(item)
    recipient = item.get("recipient", default_recipient)
    if not is_address(recipient):
        raise ValueError(f"Invalid recipient address: {recipient}")

    return ConsiderationItem(
        item_type=offer_item.item_type,
        token=offer_item.token,
        identifier_or_criteria=offer_item.identifier_or_criteria,
        start_amount=offer_item.start_amount,
        end_amount=offer_item.end_amount,
        recipient=to_checksum_address(recipient),
    )


def get_present_item_amount(
    start_amount: int, end_amount: int, params: TimeBasedItemParams
) -> int:
    """Interpolate an item's amount at the current block timestamp.

    Ascending amounts look ahead by the timestamp buffer so the fulfiller
    still supplies enough if the transaction mines a little later.

    Args:
        start_amount: Amount at start_time
        end_amount: Amount at end_time
        params: Order window and current block timestamp

    Returns:
        Amount at the (buffered) current timestamp, rounded down
    """
    if start_amount == end_amount:
        return start_amount

    duration = params.end_time - params.start_time
    if duration <= 0:
        return end_amount

    is_ascending = end_amount > start_amount
    timestamp = params.current_block_timestamp
    if is_ascending:
        timestamp += params.ascending_amount_timestamp_buffer

    if timestamp <= params.start_time:
        return start_amount

    elapsed = min(timestamp, params.end_time) - params.start_time
    remaining = duration - elapsed

    return (start_amount * remaining + end_amount * elapsed) // duration


def get_summed_token_and_identifier_amounts(
    items: Sequence[Item],
    time_based_item_params: Optional[TimeBasedItemParams] = None,
) -> TokenAndIdentifierAmounts:
    """Sum required amounts per (token, identifier).

    The same asset may appear in several items, so allowances have to be
    compared against the total. Without time parameters the larger of the
    start and end amounts is used.

    Returns:
        Mapping of lowercased token -> identifier -> summed amount
    """
    summed: TokenAndIdentifierAmounts = {}
    for item in items:
        if time_based_item_params is None:
            amount = max(item.start_amount, item.end_amount)
        else:
            amount = get_present_item_amount(
                item.start_amount, item.end_amount, time_based_item_params
            )
        identifiers = summed.setdefault(item.token.lower(), {})
        identifiers[item.identifier_or_criteria] = (
            identifiers.get(item.identifier_or_criteria, 0) + amount
        )
    return summed


def total_items_amount(items: Sequence[Item]) -> Dict[str, int]:
    """Sum start and end amounts across items."""
    return {
        "start_amount": sum(item.start_amount for item in items),
        "end_amount": sum(item.end_amount for item in items),
    }


def get_maximum_size_for_order(parameters: OrderParameters) -> int:
    """Get the maximum number of units an order can be split into.

    This is the greatest common divisor of every item amount, so filling
    one unit moves a whole number of every item.
    """
    amounts: List[int] = []
    for item in [*parameters.offer, *parameters.consideration]:
        amounts.extend([item.start_amount, item.end_amount])

    size = 0
    for amount in amounts:
        size = gcd(size, amount)
    return size


def get_remaining_units(max_units: int, total_filled: int, total_size: int) -> int:
    if total_size == 0:
        return max_units
    return max_units - (total_filled * max_units) // total_size


def map_order_amounts_from_units_to_fill(
    parameters: OrderParameters,
    units_to_fill: int,
    total_filled: int,
    total_size: int,
) -> OrderParameters:
    """Scale every item of an order to the fraction being filled.

    Units are denominated against get_maximum_size_for_order. Requests for
    more than what is left are clamped to the remaining units.

    Raises:
        ValueError: If units_to_fill is not positive or nothing is left to fill
    """
    if units_to_fill <= 0:
        raise ValueError(f"Invalid units_to_fill: {units_to_fill}. Must be greater than 0")

    max_units = get_maximum_size_for_order(parameters)
    if max_units == 0:
        raise ValueError("Order has no fillable units")

    remaining = get_remaining_units(max_units, total_filled, total_size)
    if remaining <= 0:
        raise ValueError("Order is already fully filled")

    units = min(units_to_fill, remaining)

    def scale(item: Item) -> Item:
        return replace(
            item,
            start_amount=item.start_amount * units // max_units,
            end_amount=item.end_amount * units // max_units,
        )

    return replace(
        parameters,
        offer=[scale(item) for item in parameters.offer],
        consideration=[scale(item) for item in parameters.consideration],
    )
