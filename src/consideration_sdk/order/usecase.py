"""Action pipeline.

A use case is a plan: zero or more approvals followed by exactly one
terminal action (create or exchange). Actions only carry data; the
ActionRunner interprets them one at a time, in order, waiting for each to
complete before starting the next, since later actions rely on the
on-chain effects of earlier approvals.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

import structlog

from .approval import encode_approval_transaction
from .chain import ConsiderationContract
from .signing import Signer
from .types import (
    Action,
    ApprovalAction,
    CreatedOrder,
    CreateOrderAction,
    ExchangeAction,
    OrderParameters,
)

logger = structlog.get_logger()

T = TypeVar("T")

OrderSigner = Callable[[OrderParameters, int, Optional[str]], Awaitable[str]]


def validate_actions(actions: Sequence[Action]) -> None:
    """Check that actions are approvals followed by one terminal action.

    Raises:
        ValueError: If the sequence is empty or out of order
    """
    if not actions:
        raise ValueError("Invalid actions: a use case needs a terminal action")

    *approvals, terminal = actions
    if any(not isinstance(action, ApprovalAction) for action in approvals):
        raise ValueError("Invalid actions: only approvals may precede the terminal action")
    if isinstance(terminal, ApprovalAction):
        raise ValueError("Invalid actions: the last action must be a create or exchange action")


class ActionRunner:
    """Interprets actions against a signer and the Consideration contract."""

    def __init__(
        self,
        signer: Signer,
        contract: ConsiderationContract,
        order_signer: Optional[OrderSigner] = None,
    ):
        self._signer = signer
        self._contract = contract
        self._order_signer = order_signer

    async def run(self, action: Action) -> Any:
        if isinstance(action, ApprovalAction):
            return await self._approve(action)
        if isinstance(action, CreateOrderAction):
            return await self._create_order(action)
        if isinstance(action, ExchangeAction):
            return await self._exchange(action)
        raise ValueError(f"Invalid action: {action!r}")

    async def _approve(self, action: ApprovalAction) -> Any:
        logger.info(
            "approval_submitted",
            token=action.token,
            operator=action.operator,
            item_type=action.item_type.name,
        )
        return await self._signer.send_transaction(encode_approval_transaction(action))

    async def _create_order(self, action: CreateOrderAction) -> CreatedOrder:
        if self._order_signer is None:
            raise ValueError("Invalid runner: no order signer configured for create actions")

        signature = await self._order_signer(action.parameters, action.nonce, action.account_address)
        return CreatedOrder(parameters=action.parameters, nonce=action.nonce, signature=signature)

    async def _exchange(self, action: ExchangeAction) -> Any:
        logger.info("exchange_submitted", method=action.method, value=action.value)

        if action.method == "fulfill_basic_order":
            return await self._contract.fulfill_basic_order(
                action.payload, signer=self._signer, value=action.value
            )
        if action.method == "fulfill_order":
            return await self._contract.fulfill_order(
                action.payload,
                use_fulfiller_proxy=action.use_fulfiller_proxy,
                signer=self._signer,
                value=action.value,
            )
        if action.method == "fulfill_advanced_order":
            return await self._contract.fulfill_advanced_order(
                action.payload,
                use_fulfiller_proxy=action.use_fulfiller_proxy,
                signer=self._signer,
                value=action.value,
            )
        raise ValueError(f"Invalid exchange method: {action.method}")


async def execute_all_actions(actions: Sequence[Action], runner: ActionRunner) -> Any:
    """Run actions strictly in order and return the terminal action's result."""
    validate_actions(actions)

    result: Any = None
    for action in actions:
        result = await runner.run(action)
    return result


@dataclass(frozen=True)
class OrderUseCase(Generic[T]):
    """The actions needed to complete an operation, and a way to run them.

    Nothing is submitted until execute_all_actions is called. Callers may
    also run the actions one by one with the runner.
    """

    actions: Sequence[Action]
    runner: ActionRunner

    def __post_init__(self) -> None:
        validate_actions(self.actions)

    async def execute_all_actions(self) -> T:
        return await execute_all_actions(self.actions, self.runner)
