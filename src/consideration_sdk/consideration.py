"""Consideration order orchestration.

Builds, signs and settles orders against the Consideration contract. Every
public method returns either a transaction from the contract bindings or an
OrderUseCase: a plan of approvals followed by one terminal action, run in
order by execute_all_actions.

Independent chain reads are issued together with gather_reads so a
multicall transport can batch them; reads that need an earlier result (the
order status needs the nonce) are awaited after it.
"""

import time
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence, TypedDict

import structlog

from .errors import OrderCancelledError
from .order import (
    ZERO_ADDRESS,
    MAX_INT,
    NO_SIGNATURE,
    ActionRunner,
    BalanceReader,
    ChainProvider,
    ConsiderationContract,
    CreatedOrder,
    CreateInputItem,
    CreateOrderAction,
    Fee,
    FulfillContext,
    Order,
    OrderComponents,
    OrderParameters,
    OrderUseCase,
    ProxyRegistry,
    ProxyStrategy,
    TimeBasedItemParams,
    apply_fees,
    create_eip712_domain,
    fulfill_basic_order,
    fulfill_standard_order,
    gather_reads,
    generate_random_salt,
    get_approval_actions,
    get_nonce,
    get_order_hash,
    get_order_status,
    get_order_type_from_options,
    get_proxy,
    map_input_item_to_consideration_item,
    map_input_item_to_offer_item,
    should_use_basic_fulfill,
    sign_order_with_signer,
    validate_offer_balances_and_approvals,
)

logger = structlog.get_logger()


class ConsiderationOverrides(TypedDict, total=False):
    legacy_proxy_registry_address: str
    """Address of the legacy proxy registry. Default: none (proxies disabled)"""


class ConsiderationConfig(TypedDict, total=False):
    """Configuration for the Consideration client."""

    ascending_amount_fulfillment_buffer: int
    """Seconds to look ahead when pricing ascending amounts. Default: 1800"""

    approve_exact_amount: bool
    """Approve exact ERC20 amounts instead of MAX_INT. Default: False"""

    balance_and_approval_checks_on_order_creation: bool
    """Check offerer balances and plan approvals on creation. Default: True"""

    balance_and_approval_checks_on_order_fulfillment: bool
    """Check both parties and plan approvals on fulfillment. Default: True"""

    proxy_strategy: ProxyStrategy
    """When to transfer through legacy proxies. Default: IF_ZERO_APPROVALS_NEEDED"""

    overrides: ConsiderationOverrides


class CreateOrderInput(TypedDict, total=False):
    """Input of create_order. Only offer and consideration are required."""

    zone: str
    """Zone that may restrict fulfillment. Default: zero address"""

    start_time: int
    """Unix timestamp the order becomes active. Default: now"""

    end_time: int
    """Unix timestamp the order expires. Default: MAX_INT (never).
    Passing an explicit end time is highly recommended."""

    offer: List[CreateInputItem]
    consideration: List[CreateInputItem]

    nonce: int
    """Nonce to sign under. Default: the current on-chain nonce"""

    allow_partial_fills: bool
    """Default: False"""

    restricted_by_zone: bool
    """Default: False"""

    fees: List[Fee]
    """Fees taken from the order's currency amounts"""

    salt: int
    """Default: random"""


@dataclass
class ResolvedConsiderationConfig:
    """Resolved configuration with all defaults applied."""

    ascending_amount_fulfillment_buffer: int
    approve_exact_amount: bool
    balance_and_approval_checks_on_order_creation: bool
    balance_and_approval_checks_on_order_fulfillment: bool
    proxy_strategy: ProxyStrategy
    legacy_proxy_registry_address: str


class Consideration:
    """Client for creating and fulfilling Consideration orders.

    Example:
        ```python
        consideration = Consideration(
            provider,
            contract,
            proxy_registry,
            balance_reader,
            {"proxy_strategy": ProxyStrategy.NEVER},
        )

        use_case = await consideration.create_order({
            "offer": [{"item_type": ItemType.ERC721, "token": nft, "identifier_or_criteria": 1}],
            "consideration": [{"amount": 10**18}],
            "fees": [Fee(recipient=marketplace, basis_points=250)],
        })
        created = await use_case.execute_all_actions()

        fulfill = await consideration.fulfill_order(created.to_order())
        receipt = await fulfill.execute_all_actions()
        ```
    """

    def __init__(
        self,
        provider: ChainProvider,
        contract: ConsiderationContract,
        proxy_registry: ProxyRegistry,
        balance_reader: BalanceReader,
        config: Optional[ConsiderationConfig] = None,
    ):
        """Initialize the client.

        Args:
            provider: Chain reads and per-account signers (ideally multicall-backed)
            contract: Consideration contract bindings
            proxy_registry: Legacy proxy lookup
            balance_reader: Balance and allowance scanner
            config: Optional configuration
        """
        config = config or {}
        overrides = config.get("overrides", {})

        self.provider = provider
        self.contract = contract
        self._proxy_registry = proxy_registry
        self._balance_reader = balance_reader
        self._config = ResolvedConsiderationConfig(
            ascending_amount_fulfillment_buffer=config.get(
                "ascending_amount_fulfillment_buffer", 1800
            ),
            approve_exact_amount=config.get("approve_exact_amount", False),
            balance_and_approval_checks_on_order_creation=config.get(
                "balance_and_approval_checks_on_order_creation", True
            ),
            balance_and_approval_checks_on_order_fulfillment=config.get(
                "balance_and_approval_checks_on_order_fulfillment", True
            ),
            proxy_strategy=ProxyStrategy(
                config.get("proxy_strategy", ProxyStrategy.IF_ZERO_APPROVALS_NEEDED)
            ),
            legacy_proxy_registry_address=overrides.get("legacy_proxy_registry_address", ""),
        )

    def get_config(self) -> ResolvedConsiderationConfig:
        """Get the resolved configuration."""
        return self._config

    async def _get_proxy(self, account: str) -> Optional[str]:
        return await get_proxy(
            account, self._proxy_registry, self._config.legacy_proxy_registry_address
        )

    async def _resolve_nonce(self, offerer: str, zone: str, nonce: Optional[int]) -> int:
        if nonce is not None:
            return nonce
        return await get_nonce(offerer, zone, self.contract)

    async def create_order(
        self,
        input: CreateOrderInput,
        account_address: Optional[str] = None,
    ) -> OrderUseCase[CreatedOrder]:
        """Plan the creation of an order.

        Fees are deducted from the order's currency items and appended as
        consideration items. When creation checks are on, the offerer must be
        able to fund the fee-adjusted offer and any missing approvals are
        planned before the signing action.

        Args:
            input: Order input (see CreateOrderInput for defaults)
            account_address: Offerer account (default: provider's default account)

        Returns:
            Use case whose terminal action signs the order

        Raises:
            InsufficientBalancesError: If the offerer cannot fund the offer
            ProxyUnavailableError: If the proxy strategy requires a missing proxy
            ValueError: If items or fees are invalid
        """
        signer = self.provider.get_signer(account_address)
        offerer = await signer.get_address()

        zone = input.get("zone", ZERO_ADDRESS)
        start_time = int(input.get("start_time", int(time.time())))
        end_time = int(input.get("end_time", MAX_INT))
        salt = input.get("salt")
        if salt is None:
            salt = generate_random_salt()
        allow_partial_fills = input.get("allow_partial_fills", False)
        restricted_by_zone = input.get("restricted_by_zone", False)

        if end_time <= start_time:
            raise ValueError(f"Invalid end_time: {end_time} must be after start_time {start_time}")

        offer_items = [map_input_item_to_offer_item(item) for item in input["offer"]]
        consideration_items = [
            map_input_item_to_consideration_item(item, offerer) for item in input["consideration"]
        ]

        offer_with_fees, consideration_with_fees = apply_fees(
            offer_items, consideration_items, input.get("fees")
        )

        proxy, nonce = await gather_reads(
            self._get_proxy(offerer),
            self._resolve_nonce(offerer, zone, input.get("nonce")),
        )

        balances_and_approvals = await self._balance_reader.get_balances_and_approvals(
            offerer, offer_items, proxy
        )

        check_balances_and_approvals = self._config.balance_and_approval_checks_on_order_creation

        use_proxy, insufficient_approvals = validate_offer_balances_and_approvals(
            offer=offer_with_fees,
            balances_and_approvals=balances_and_approvals,
            contract_address=self.contract.address,
            proxy=proxy,
            proxy_strategy=self._config.proxy_strategy,
            throw_on_insufficient_balances=check_balances_and_approvals,
        )

        order_type = get_order_type_from_options(
            allow_partial_fills=allow_partial_fills,
            restricted_by_zone=restricted_by_zone,
            use_proxy=use_proxy,
        )

        order_parameters = OrderParameters(
            offerer=offerer,
            zone=zone,
            order_type=order_type,
            start_time=start_time,
            end_time=end_time,
            offer=offer_with_fees,
            consideration=consideration_with_fees,
            salt=salt,
        )

        approval_actions = (
            get_approval_actions(insufficient_approvals, self._config.approve_exact_amount)
            if check_balances_and_approvals
            else []
        )

        create_order_action = CreateOrderAction(
            parameters=order_parameters,
            nonce=nonce,
            account_address=account_address,
        )

        logger.debug(
            "order_planned",
            offerer=offerer,
            order_type=order_type.name,
            approvals=len(approval_actions),
        )

        return OrderUseCase(
            actions=[*approval_actions, create_order_action],
            runner=ActionRunner(signer, self.contract, order_signer=self.sign_order),
        )

    async def sign_order(
        self,
        order_parameters: OrderParameters,
        nonce: int,
        account_address: Optional[str] = None,
    ) -> str:
        """Sign order parameters under a nonce.

        Returns:
            EIP-2098 compact signature hex string
        """
        signer = self.provider.get_signer(account_address)
        chain_id = await self.provider.get_chain_id()

        domain = create_eip712_domain(self.contract.address, chain_id)
        components = order_parameters.to_components(nonce)

        return await sign_order_with_signer(signer, domain, components)

    async def cancel_orders(
        self,
        orders: Sequence[OrderComponents],
        account_address: Optional[str] = None,
    ) -> Any:
        """Cancel specific orders on-chain."""
        signer = self.provider.get_signer(account_address)
        logger.info("cancel_submitted", count=len(orders))
        return await self.contract.cancel(orders, signer=signer)

    async def bulk_cancel_orders(
        self,
        zone: str = ZERO_ADDRESS,
        offerer: Optional[str] = None,
    ) -> Any:
        """Cancel every order signed under the current nonce for an offerer and zone.

        Increments the on-chain nonce, which invalidates all signatures made
        with the previous one.
        """
        signer = self.provider.get_signer(offerer)
        resolved_offerer = offerer or await signer.get_address()

        logger.info("nonce_increment_submitted", offerer=resolved_offerer, zone=zone)
        return await self.contract.increment_nonce(resolved_offerer, zone, signer=signer)

    async def approve_orders(
        self,
        orders: Sequence[Order],
        account_address: Optional[str] = None,
    ) -> Any:
        """Validate orders on-chain so fulfillment can skip signature checks."""
        signer = self.provider.get_signer(account_address)
        logger.info("validate_submitted", count=len(orders))
        return await self.contract.validate(orders, signer=signer)

    async def fulfill_order(
        self,
        order: Order,
        units_to_fill: Optional[int] = None,
        account_address: Optional[str] = None,
    ) -> OrderUseCase[Any]:
        """Plan the fulfillment of an order.

        Fulfills through either the basic method or the standard method.
        Units to fill are denominated by the max possible size of the order,
        which is the greatest common divisor of its item amounts (see
        get_maximum_size_for_order). If the maximum size of an order is 4,
        supplying 2 as the units to fill will fill half of the order.

        If the order is already validated on-chain, the planned exchange
        carries a copy of the order with its signature blanked to "0x" to
        save gas. The order passed in is not modified.

        Args:
            order: Signed (or on-chain validated) order
            units_to_fill: Units to fill (default: the whole remaining order)
            account_address: Fulfiller account (default: provider's default account)

        Returns:
            Use case of approvals followed by the exchange action

        Raises:
            OrderCancelledError: If the order has been cancelled
            InsufficientBalancesError: If either party cannot fund the trade
            InsufficientApprovalsError: If the offerer has not approved its offer
        """
        parameters = order.parameters
        fulfiller = self.provider.get_signer(account_address)
        fulfiller_address = await fulfiller.get_address()

        offerer_proxy, fulfiller_proxy, nonce, latest_block = await gather_reads(
            self._get_proxy(parameters.offerer),
            self._get_proxy(fulfiller_address),
            get_nonce(parameters.offerer, parameters.zone, self.contract),
            self.provider.get_block_number(),
        )

        order_hash = get_order_hash(parameters.to_components(nonce))

        (
            offerer_balances_and_approvals,
            fulfiller_balances_and_approvals,
            current_block_timestamp,
            status,
        ) = await gather_reads(
            self._balance_reader.get_balances_and_approvals(
                parameters.offerer, parameters.offer, offerer_proxy
            ),
            # Offer items may be received by the fulfiller on standard fulfills
            self._balance_reader.get_balances_and_approvals(
                fulfiller_address,
                [*parameters.offer, *parameters.consideration],
                fulfiller_proxy,
            ),
            self.provider.get_block_timestamp(latest_block),
            get_order_status(order_hash, self.contract),
        )

        if status.is_cancelled:
            raise OrderCancelledError(order_hash)

        if status.is_validated:
            order = replace(order, signature=NO_SIGNATURE)
            logger.debug("order_signature_cleared", order_hash=order_hash)

        context = FulfillContext(
            contract=self.contract,
            offerer_balances_and_approvals=offerer_balances_and_approvals,
            fulfiller_balances_and_approvals=fulfiller_balances_and_approvals,
            time_based_item_params=TimeBasedItemParams(
                start_time=parameters.start_time,
                end_time=parameters.end_time,
                current_block_timestamp=current_block_timestamp,
                ascending_amount_timestamp_buffer=self._config.ascending_amount_fulfillment_buffer,
            ),
            offerer_proxy=offerer_proxy,
            fulfiller_proxy=fulfiller_proxy,
            proxy_strategy=self._config.proxy_strategy,
            runner=ActionRunner(fulfiller, self.contract),
            approve_exact_amount=self._config.approve_exact_amount,
            check_balances=self._config.balance_and_approval_checks_on_order_fulfillment,
        )

        # Basic fulfills are cheaper for simple and "hot" use cases
        if should_use_basic_fulfill(parameters, status.total_filled, units_to_fill):
            logger.debug("fulfillment_path_selected", order_hash=order_hash, path="basic")
            return fulfill_basic_order(order, context)

        logger.debug("fulfillment_path_selected", order_hash=order_hash, path="standard")
        return fulfill_standard_order(
            order,
            units_to_fill=units_to_fill,
            total_filled=status.total_filled,
            total_size=status.total_size,
            context=context,
        )
