"""Order option decisions: proxy usage and order type."""

from typing import Dict, Sequence, Tuple

import structlog

from ..errors import UnknownOrderTypeError
from .types import InsufficientApproval, OrderType, ProxyStrategy

logger = structlog.get_logger()


# (allow_partial_fills, restricted_by_zone, use_proxy) -> order type
ORDER_OPTIONS_TO_ORDER_TYPE: Dict[Tuple[bool, bool, bool], OrderType] = {
    (False, False, False): OrderType.FULL_OPEN,
    (True, False, False): OrderType.PARTIAL_OPEN,
    (False, True, False): OrderType.FULL_RESTRICTED,
    (True, True, False): OrderType.PARTIAL_RESTRICTED,
    (False, False, True): OrderType.FULL_OPEN_VIA_PROXY,
    (True, False, True): OrderType.PARTIAL_OPEN_VIA_PROXY,
    (False, True, True): OrderType.FULL_RESTRICTED_VIA_PROXY,
    (True, True, True): OrderType.PARTIAL_RESTRICTED_VIA_PROXY,
}


def get_order_type_from_options(
    allow_partial_fills: bool,
    restricted_by_zone: bool,
    use_proxy: bool,
) -> OrderType:
    """Look up the order type for a combination of order options.

    Raises:
        UnknownOrderTypeError: If an option is not a bool
    """
    options = (allow_partial_fills, restricted_by_zone, use_proxy)
    if not all(isinstance(option, bool) for option in options):
        raise UnknownOrderTypeError(f"No order type for options: {options}")

    try:
        order_type = ORDER_OPTIONS_TO_ORDER_TYPE[options]
    except KeyError:
        raise UnknownOrderTypeError(f"No order type for options: {options}") from None

    logger.debug(
        "order_type_selected",
        allow_partial_fills=allow_partial_fills,
        restricted_by_zone=restricted_by_zone,
        use_proxy=use_proxy,
        order_type=order_type.name,
    )
    return order_type


def use_proxy_from_approvals(
    insufficient_owner_approvals: Sequence[InsufficientApproval],
    insufficient_proxy_approvals: Sequence[InsufficientApproval],
    proxy_strategy: ProxyStrategy,
) -> bool:
    """Decide whether transfers should go through the account's proxy.

    With IF_ZERO_APPROVALS_NEEDED the proxy is used only when it needs no
    new approvals while approving the contract directly would need some.
    Ties go to direct approvals.
    """
    if proxy_strategy == ProxyStrategy.IF_ZERO_APPROVALS_NEEDED:
        return len(insufficient_owner_approvals) > 0 and len(insufficient_proxy_approvals) == 0

    return proxy_strategy == ProxyStrategy.ALWAYS
