"""Fee injection.

Fees are charged on the aggregate currency amount of an order. Each fee is
``floor(total * basis_points / 10000)``, computed separately for start and
end amounts. The summed fee is then removed from the currency items in
proportion to their size (rounded down) and any leftover smallest units are
taken from the currency items in order, offer items first. The fee amounts
are appended as consideration items, so the total value of the order never
changes.
"""

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

import structlog
from eth_utils import is_address, to_checksum_address

from .item import is_currency_item, total_items_amount
from .types import ConsiderationItem, Fee, Item, ItemType, OfferItem
from .utils import BASIS_POINTS_DENOMINATOR, ZERO_ADDRESS, multiply_basis_points

logger = structlog.get_logger()


def validate_fees(fees: Sequence[Fee]) -> None:
    """Check fee recipients and that fees do not exceed 100%.

    Raises:
        ValueError: If a recipient is invalid or basis points are out of range
    """
    for fee in fees:
        if not is_address(fee.recipient):
            raise ValueError(f"Invalid fee recipient: {fee.recipient}")
        if fee.basis_points < 0:
            raise ValueError(f"Invalid fee basis points: {fee.basis_points}")

    total_basis_points = sum(fee.basis_points for fee in fees)
    if total_basis_points > BASIS_POINTS_DENOMINATOR:
        raise ValueError(
            f"Invalid fees: {total_basis_points} basis points exceeds {BASIS_POINTS_DENOMINATOR}"
        )


def fee_to_consideration_item(
    fee: Fee,
    token: str,
    base_amount: int,
    base_end_amount: Optional[int] = None,
) -> ConsiderationItem:
    """Build the consideration item paying a fee.

    Args:
        fee: Fee recipient and basis points
        token: Currency token of the order (zero address for native)
        base_amount: Total currency start amount of the order
        base_end_amount: Total currency end amount (default: base_amount)
    """
    if base_end_amount is None:
        base_end_amount = base_amount

    return ConsiderationItem(
        item_type=ItemType.NATIVE if token == ZERO_ADDRESS else ItemType.ERC20,
        token=token,
        identifier_or_criteria=0,
        start_amount=multiply_basis_points(base_amount, fee.basis_points),
        end_amount=multiply_basis_points(base_end_amount, fee.basis_points),
        recipient=to_checksum_address(fee.recipient),
    )


def _split_deduction(amounts: List[int], deduction: int) -> List[int]:
    total = sum(amounts)
    if total == 0:
        return [0] * len(amounts)

    deducted = [amount * deduction // total for amount in amounts]
    leftover = deduction - sum(deducted)
    for index, amount in enumerate(amounts):
        if leftover == 0:
            break
        take = min(leftover, amount - deducted[index])
        deducted[index] += take
        leftover -= take
    return deducted


def deduct_fees(
    offer: Sequence[OfferItem],
    consideration: Sequence[ConsiderationItem],
    fee_items: Sequence[ConsiderationItem],
) -> Tuple[List[OfferItem], List[ConsiderationItem]]:
    """Remove the fee item amounts from the currency items of an order.

    Non-currency items pass through unchanged.
    """
    items: List[Item] = [*offer, *consideration]
    currency_indexes = [i for i, item in enumerate(items) if is_currency_item(item)]

    start_deductions = _split_deduction(
        [items[i].start_amount for i in currency_indexes],
        sum(fee.start_amount for fee in fee_items),
    )
    end_deductions = _split_deduction(
        [items[i].end_amount for i in currency_indexes],
        sum(fee.end_amount for fee in fee_items),
    )

    for index, start_deduction, end_deduction in zip(
        currency_indexes, start_deductions, end_deductions
    ):
        item = items[index]
        items[index] = replace(
            item,
            start_amount=item.start_amount - start_deduction,
            end_amount=item.end_amount - end_deduction,
        )

    return items[: len(offer)], items[len(offer) :]


def apply_fees(
    offer: Sequence[OfferItem],
    consideration: Sequence[ConsiderationItem],
    fees: Optional[Sequence[Fee]] = None,
) -> Tuple[List[OfferItem], List[ConsiderationItem]]:
    """Deduct fees from an order's currency items and append the fee items.

    Args:
        offer: Offer items before fees
        consideration: Consideration items before fees
        fees: Fees to charge (optional)

    Returns:
        Fee-adjusted offer and consideration, with one new consideration
        item per fee at the end

    Raises:
        ValueError: If fees are invalid, the order has no currency item, or
            its currency items use different tokens
    """
    if not fees:
        return list(offer), list(consideration)

    validate_fees(fees)

    currencies = [item for item in [*offer, *consideration] if is_currency_item(item)]
    if not currencies:
        raise ValueError("Invalid fees: order has no currency item to take fees from")

    token = currencies[0].token
    if any(item.token.lower() != token.lower() for item in currencies):
        raise ValueError("Invalid fees: currency items must all use the same token")

    total = total_items_amount(currencies)
    fee_items = [
        fee_to_consideration_item(
            fee,
            token=token,
            base_amount=total["start_amount"],
            base_end_amount=total["end_amount"],
        )
        for fee in fees
    ]

    deducted_offer, deducted_consideration = deduct_fees(offer, consideration, fee_items)

    logger.debug(
        "fees_applied",
        token=token,
        fee_count=len(fee_items),
        total_fee_start_amount=sum(item.start_amount for item in fee_items),
        total_fee_end_amount=sum(item.end_amount for item in fee_items),
    )

    return deducted_offer, [*deducted_consideration, *fee_items]
