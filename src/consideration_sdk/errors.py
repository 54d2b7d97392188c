"""Errors raised by the Consideration SDK."""

from typing import Any, List, Optional


class ConsiderationError(Exception):
    """Base class for all SDK errors."""


class OrderCancelledError(ConsiderationError):
    """The order being fulfilled has been cancelled on-chain."""

    def __init__(self, order_hash: str):
        super().__init__(f"The order you are trying to fulfill is cancelled: {order_hash}")
        self.order_hash = order_hash


class InsufficientBalancesError(ConsiderationError):
    """An account does not hold the amounts needed to create or fulfill an order."""

    def __init__(self, message: str, insufficient_balances: Optional[List[Any]] = None):
        super().__init__(message)
        self.insufficient_balances = insufficient_balances or []


class UnknownOrderTypeError(ConsiderationError, KeyError):
    """No order type is mapped for the requested order options."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ProxyUnavailableError(ConsiderationError):
    """A proxy transfer path was required but the account has no registered proxy."""


class InsufficientApprovalsError(ConsiderationError):
    """An account has not granted the allowances its order transfers rely on."""

    def __init__(self, message: str, insufficient_approvals: Optional[List[Any]] = None):
        super().__init__(message)
        self.insufficient_approvals = insufficient_approvals or []
