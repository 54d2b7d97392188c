"""Approval actions and their calldata."""

from typing import Any, Dict, List, Sequence, Tuple

from eth_abi import encode
from eth_utils import keccak, to_hex

from .types import ApprovalAction, InsufficientApproval, ItemType
from .utils import MAX_INT

ERC20_APPROVE_SELECTOR = keccak(text="approve(address,uint256)")[:4]
SET_APPROVAL_FOR_ALL_SELECTOR = keccak(text="setApprovalForAll(address,bool)")[:4]


def get_approval_actions(
    insufficient_approvals: Sequence[InsufficientApproval],
    approve_exact_amount: bool = False,
) -> List[ApprovalAction]:
    """Build one approval action per (token, operator) that falls short.

    ERC20 tokens are approved for MAX_INT unless approve_exact_amount is
    set, in which case the summed required amount is approved. NFT
    collections are approved for all.

    Args:
        insufficient_approvals: Approvals missing on the chosen transfer path
        approve_exact_amount: Approve only what is required

    Returns:
        Approval actions in first-seen order
    """
    actions: Dict[Tuple[str, str], ApprovalAction] = {}
    for approval in insufficient_approvals:
        if approval.item_type == ItemType.NATIVE:
            continue

        key = (approval.token.lower(), approval.operator.lower())
        if key in actions:
            if approval.item_type == ItemType.ERC20 and approve_exact_amount:
                existing = actions[key]
                actions[key] = ApprovalAction(
                    token=existing.token,
                    item_type=existing.item_type,
                    identifier_or_criteria=existing.identifier_or_criteria,
                    operator=existing.operator,
                    amount=existing.amount + approval.required_approved_amount,
                )
            continue

        if approval.item_type == ItemType.ERC20:
            amount = approval.required_approved_amount if approve_exact_amount else MAX_INT
        else:
            amount = 0

        actions[key] = ApprovalAction(
            token=approval.token,
            item_type=approval.item_type,
            identifier_or_criteria=approval.identifier_or_criteria,
            operator=approval.operator,
            amount=amount,
        )

    return list(actions.values())


def encode_approval_transaction(action: ApprovalAction) -> Dict[str, Any]:
    """Encode the token call granting an approval.

    Returns:
        Transaction dict with to, data and value
    """
    if action.item_type == ItemType.ERC20:
        data = ERC20_APPROVE_SELECTOR + encode(
            ["address", "uint256"], [action.operator, action.amount]
        )
    else:
        data = SET_APPROVAL_FOR_ALL_SELECTOR + encode(["address", "bool"], [action.operator, True])

    return {"to": action.token, "data": to_hex(data), "value": 0}
