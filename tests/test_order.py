"""Tests for the order building blocks."""

import asyncio

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from consideration_sdk import UnknownOrderTypeError
from consideration_sdk.order import (
    MAX_INT,
    ORDER_OPTIONS_TO_ORDER_TYPE,
    BasicOrderRoute,
    ConsiderationItem,
    Fee,
    InsufficientApproval,
    ItemType,
    OfferItem,
    OrderParameters,
    OrderType,
    ProxyStrategy,
    TimeBasedItemParams,
    ZERO_ADDRESS,
    apply_fees,
    compact_signature,
    create_eip712_domain,
    expand_compact_signature,
    gather_reads,
    get_maximum_size_for_order,
    get_order_hash,
    get_order_type_from_options,
    get_present_item_amount,
    get_summed_token_and_identifier_amounts,
    map_input_item_to_consideration_item,
    map_input_item_to_offer_item,
    map_order_amounts_from_units_to_fill,
    recover_order_signer,
    sign_order,
    should_use_basic_fulfill,
    use_proxy_from_approvals,
    verify_order_signature,
)
from consideration_sdk.order.fulfill import get_basic_order_route
from consideration_sdk.order.signing import build_order_typed_data

from conftest import CONTRACT_ADDRESS, ERC20, FEE_RECIPIENT, NFT, OFFERER, OFFERER_KEY


def make_parameters(**overrides) -> OrderParameters:
    fields = dict(
        offerer=OFFERER,
        zone=ZERO_ADDRESS,
        order_type=OrderType.FULL_OPEN,
        start_time=0,
        end_time=MAX_INT,
        offer=[OfferItem(ItemType.ERC721, NFT, 1, 1, 1)],
        consideration=[
            ConsiderationItem(ItemType.ERC20, ERC20, 0, 1_000_000, 1_000_000, OFFERER)
        ],
        salt=12345,
    )
    fields.update(overrides)
    return OrderParameters(**fields)


def approval(token: str = ERC20) -> InsufficientApproval:
    return InsufficientApproval(
        token=token,
        identifier_or_criteria=0,
        approved_amount=0,
        required_approved_amount=100,
        operator=CONTRACT_ADDRESS,
        item_type=ItemType.ERC20,
    )


class TestItems:
    """Tests for item mapping and amount math."""

    def test_map_input_item_defaults(self):
        """Test that a bare amount maps to native currency."""
        item = map_input_item_to_offer_item({"amount": 5})

        assert item.item_type == ItemType.NATIVE
        assert item.token == ZERO_ADDRESS
        assert item.start_amount == item.end_amount == 5

    def test_map_input_item_erc20_with_end_amount(self):
        """Test that a token address implies ERC20."""
        item = map_input_item_to_offer_item({"token": ERC20.lower(), "amount": 5, "end_amount": 10})

        assert item.item_type == ItemType.ERC20
        assert item.token == ERC20
        assert item.end_amount == 10

    def test_map_consideration_item_recipient_defaults_to_offerer(self):
        """Test that consideration recipients default to the offerer."""
        item = map_input_item_to_consideration_item({"amount": 5}, OFFERER)
        assert item.recipient == OFFERER

    def test_map_input_item_invalid_token(self):
        """Test that invalid token raises error."""
        with pytest.raises(ValueError, match="Invalid token address"):
            map_input_item_to_offer_item({"token": "invalid", "amount": 1})

    def test_present_amount_ascending_uses_buffer(self):
        """Test that ascending amounts look ahead by the buffer."""
        params = TimeBasedItemParams(0, 1000, 500, 0)
        assert get_present_item_amount(100, 200, params) == 150

        buffered = TimeBasedItemParams(0, 1000, 500, 100)
        assert get_present_item_amount(100, 200, buffered) == 160

    def test_present_amount_descending_ignores_buffer(self):
        """Test that descending amounts are priced at the current timestamp."""
        params = TimeBasedItemParams(0, 1000, 500, 100)
        assert get_present_item_amount(200, 100, params) == 150

    def test_present_amount_outside_window(self):
        """Test that amounts clamp to the start and end of the window."""
        before = TimeBasedItemParams(1000, 2000, 10, 0)
        after = TimeBasedItemParams(1000, 2000, 5000, 0)

        assert get_present_item_amount(100, 200, before) == 100
        assert get_present_item_amount(100, 200, after) == 200

    def test_summed_amounts_merge_duplicate_assets(self):
        """Test that the same asset in several items is summed."""
        items = [
            OfferItem(ItemType.ERC20, ERC20, 0, 40, 40),
            OfferItem(ItemType.ERC20, ERC20.lower(), 0, 60, 80),
            OfferItem(ItemType.ERC721, NFT, 7, 1, 1),
        ]

        summed = get_summed_token_and_identifier_amounts(items)

        assert summed[ERC20.lower()] == {0: 120}
        assert summed[NFT.lower()] == {7: 1}

    def test_maximum_size_is_gcd(self):
        """Test that the maximum size is the GCD of all amounts."""
        parameters = make_parameters(
            offer=[OfferItem(ItemType.ERC1155, NFT, 1, 10, 10)],
            consideration=[ConsiderationItem(ItemType.NATIVE, ZERO_ADDRESS, 0, 25, 25, OFFERER)],
        )
        assert get_maximum_size_for_order(parameters) == 5

    def test_units_to_fill_scales_and_clamps(self):
        """Test that units scale every item and are clamped to what remains."""
        parameters = make_parameters(
            offer=[OfferItem(ItemType.ERC1155, NFT, 1, 10, 10)],
            consideration=[ConsiderationItem(ItemType.NATIVE, ZERO_ADDRESS, 0, 100, 100, OFFERER)],
        )

        half = map_order_amounts_from_units_to_fill(parameters, 5, 0, 0)
        assert half.offer[0].start_amount == 5
        assert half.consideration[0].start_amount == 50

        # 8 of 10 units already filled: only 2 remain
        clamped = map_order_amounts_from_units_to_fill(parameters, 5, 8, 10)
        assert clamped.offer[0].start_amount == 2
        assert clamped.consideration[0].end_amount == 20

    def test_units_to_fill_must_be_positive(self):
        """Test that zero units raises error."""
        with pytest.raises(ValueError, match="Invalid units_to_fill"):
            map_order_amounts_from_units_to_fill(make_parameters(), 0, 0, 0)


class TestFees:
    """Tests for fee injection."""

    def test_single_fee_on_offer(self):
        """Test that a 2.5% fee on 100 takes 2, rounded down."""
        offer = [OfferItem(ItemType.ERC20, ERC20, 0, 100, 100)]
        consideration = [ConsiderationItem(ItemType.ERC721, NFT, 1, 1, 1, OFFERER)]

        new_offer, new_consideration = apply_fees(
            offer, consideration, [Fee(FEE_RECIPIENT, 250)]
        )

        assert new_offer[0].start_amount == 98
        assert new_offer[0].end_amount == 98
        assert len(new_consideration) == 2
        assert new_consideration[0] == consideration[0]

        fee_item = new_consideration[1]
        assert fee_item.item_type == ItemType.ERC20
        assert fee_item.token == ERC20
        assert fee_item.start_amount == 2
        assert fee_item.recipient == FEE_RECIPIENT

    def test_native_fee_item_type(self):
        """Test that fees on native currency produce native fee items."""
        offer = [OfferItem(ItemType.ERC721, NFT, 1, 1, 1)]
        consideration = [
            ConsiderationItem(ItemType.NATIVE, ZERO_ADDRESS, 0, 10**18, 10**18, OFFERER)
        ]

        _, new_consideration = apply_fees(offer, consideration, [Fee(FEE_RECIPIENT, 500)])

        assert new_consideration[0].start_amount == 95 * 10**16
        assert new_consideration[1].item_type == ItemType.NATIVE
        assert new_consideration[1].start_amount == 5 * 10**16

    @pytest.mark.parametrize(
        "amounts,basis_points",
        [
            ([(100, 100)], [250]),
            ([(333, 777), (1, 0)], [250, 125]),
            ([(10**18, 5 * 10**17), (7, 9), (999_999, 1)], [1, 9999]),
            ([(3, 3), (3, 3), (3, 3)], [3333, 3333, 3334]),
        ],
    )
    def test_fees_conserve_total_value(self, amounts, basis_points):
        """Test that deducted items plus fee items equal the original total."""
        offer = [OfferItem(ItemType.ERC20, ERC20, 0, start, end) for start, end in amounts[:1]]
        consideration = [
            ConsiderationItem(ItemType.ERC20, ERC20, 0, start, end, OFFERER)
            for start, end in amounts[1:]
        ] + [ConsiderationItem(ItemType.ERC721, NFT, 1, 1, 1, OFFERER)]
        fees = [Fee(FEE_RECIPIENT, bps) for bps in basis_points]

        new_offer, new_consideration = apply_fees(offer, consideration, fees)

        for field in ("start_amount", "end_amount"):
            before = sum(getattr(item, field) for item in [*offer, *consideration])
            after = sum(getattr(item, field) for item in [*new_offer, *new_consideration])
            assert before == after
        assert len(new_consideration) == len(consideration) + len(fees)
        assert all(item.start_amount >= 0 and item.end_amount >= 0 for item in new_offer)

    def test_fees_leave_nfts_untouched(self):
        """Test that non-currency items pass through unchanged."""
        nft = OfferItem(ItemType.ERC721, NFT, 1, 1, 1)
        currency = ConsiderationItem(ItemType.ERC20, ERC20, 0, 1000, 1000, OFFERER)

        new_offer, _ = apply_fees([nft], [currency], [Fee(FEE_RECIPIENT, 1000)])

        assert new_offer == [nft]

    def test_no_fees_is_identity(self):
        """Test that missing fees change nothing."""
        offer = [OfferItem(ItemType.ERC20, ERC20, 0, 100, 100)]
        assert apply_fees(offer, [], None) == (offer, [])

    def test_fees_over_100_percent(self):
        """Test that fees above 10000 basis points raise error."""
        offer = [OfferItem(ItemType.ERC20, ERC20, 0, 100, 100)]
        with pytest.raises(ValueError, match="exceeds"):
            apply_fees(offer, [], [Fee(FEE_RECIPIENT, 6000), Fee(FEE_RECIPIENT, 5000)])

    def test_fees_without_currency(self):
        """Test that fees on an order without currency raise error."""
        offer = [OfferItem(ItemType.ERC721, NFT, 1, 1, 1)]
        with pytest.raises(ValueError, match="no currency item"):
            apply_fees(offer, [], [Fee(FEE_RECIPIENT, 250)])


class TestOrderOptions:
    """Tests for the order type table and proxy decision."""

    def test_all_combinations_map_to_distinct_types(self):
        """Test that the 8 option combinations map to 8 distinct codes."""
        types = {
            get_order_type_from_options(partial, restricted, proxy)
            for partial in (False, True)
            for restricted in (False, True)
            for proxy in (False, True)
        }
        assert len(types) == 8
        assert len(ORDER_OPTIONS_TO_ORDER_TYPE) == 8

    def test_specific_order_types(self):
        """Test a few known mappings."""
        assert get_order_type_from_options(False, False, False) == OrderType.FULL_OPEN
        assert get_order_type_from_options(True, True, True) == OrderType.PARTIAL_RESTRICTED_VIA_PROXY
        assert get_order_type_from_options(False, False, True) == OrderType.FULL_OPEN_VIA_PROXY

    def test_unknown_options_fail_loudly(self):
        """Test that an unmapped combination raises error."""
        with pytest.raises(UnknownOrderTypeError):
            get_order_type_from_options(None, False, False)

        with pytest.raises(KeyError):
            get_order_type_from_options(False, "yes", False)

    @pytest.mark.parametrize("owner", [[], [approval()]])
    @pytest.mark.parametrize("proxy", [[], [approval()]])
    def test_never_and_always(self, owner, proxy):
        """Test that NEVER and ALWAYS ignore the shortfalls."""
        assert use_proxy_from_approvals(owner, proxy, ProxyStrategy.NEVER) is False
        assert use_proxy_from_approvals(owner, proxy, ProxyStrategy.ALWAYS) is True

    def test_if_zero_approvals_needed(self):
        """Test that the proxy is used only when it alone needs no approvals."""
        strategy = ProxyStrategy.IF_ZERO_APPROVALS_NEEDED

        assert use_proxy_from_approvals([approval()], [], strategy) is True
        assert use_proxy_from_approvals([], [], strategy) is False
        assert use_proxy_from_approvals([], [approval()], strategy) is False
        assert use_proxy_from_approvals([approval()], [approval()], strategy) is False


def currency(token: str = ERC20, amount: int = 1000, recipient: str = OFFERER, end_amount=None):
    item_type = ItemType.NATIVE if token == ZERO_ADDRESS else ItemType.ERC20
    return ConsiderationItem(
        item_type, token, 0, amount, amount if end_amount is None else end_amount, recipient
    )


def nft_consideration(identifier: int = 1, item_type: ItemType = ItemType.ERC721):
    return ConsiderationItem(item_type, NFT, identifier, 1, 1, OFFERER)


class TestBasicFulfillment:
    """Tests for the basic fulfillment predicate and route."""

    def test_nft_for_currency_qualifies(self):
        """Test that one NFT sold for one currency uses the basic path."""
        parameters = make_parameters(
            consideration=[currency(), currency(amount=25, recipient=FEE_RECIPIENT)]
        )
        assert should_use_basic_fulfill(parameters, total_filled=0) is True

    def test_currency_bid_for_nft_qualifies(self):
        """Test that a currency offer for an NFT with a fee uses the basic path."""
        parameters = make_parameters(
            offer=[OfferItem(ItemType.ERC20, ERC20, 0, 975, 975)],
            consideration=[nft_consideration(), currency(amount=25, recipient=FEE_RECIPIENT)],
        )
        assert should_use_basic_fulfill(parameters, total_filled=0) is True

    @pytest.mark.parametrize(
        "overrides",
        [
            pytest.param(
                {"offer": [OfferItem(ItemType.ERC721_WITH_CRITERIA, NFT, 0, 1, 1)]},
                id="criteria-item",
            ),
            pytest.param(
                {"consideration": [currency(), currency(ZERO_ADDRESS, 25, FEE_RECIPIENT)]},
                id="mixed-currency-tokens",
            ),
            pytest.param(
                {"consideration": [currency(amount=1000, end_amount=2000)]},
                id="start-differs-from-end",
            ),
            pytest.param(
                {"consideration": [currency(recipient=FEE_RECIPIENT)]},
                id="first-recipient-not-offerer",
            ),
            pytest.param(
                {
                    "offer": [OfferItem(ItemType.ERC20, ERC20, 0, 1000, 1000)],
                    "consideration": [currency(amount=10), nft_consideration()],
                },
                id="nft-not-offer-or-first-consideration",
            ),
            pytest.param(
                {
                    "offer": [OfferItem(ItemType.NATIVE, ZERO_ADDRESS, 0, 1000, 1000)],
                    "consideration": [nft_consideration()],
                },
                id="native-offer",
            ),
            pytest.param(
                {"consideration": [currency(), nft_consideration(identifier=2)]},
                id="two-nfts",
            ),
            pytest.param(
                {
                    "offer": [
                        OfferItem(ItemType.ERC721, NFT, 1, 1, 1),
                        OfferItem(ItemType.ERC721, NFT, 2, 1, 1),
                    ]
                },
                id="two-offer-items",
            ),
            pytest.param({"consideration": []}, id="no-consideration"),
        ],
    )
    def test_disqualifying_shapes(self, overrides):
        """Test that each disqualifying order shape falls back to the standard path."""
        assert should_use_basic_fulfill(make_parameters(**overrides), total_filled=0) is False

    def test_partially_filled_order_is_standard(self):
        assert should_use_basic_fulfill(make_parameters(), total_filled=1) is False

    def test_units_to_fill_below_max_size_is_standard(self):
        """Test that filling less than the whole order falls back to the standard path."""
        parameters = make_parameters(
            offer=[OfferItem(ItemType.ERC1155, NFT, 1, 10, 10)],
            consideration=[currency(amount=1000)],
        )
        assert should_use_basic_fulfill(parameters, total_filled=0, units_to_fill=10) is True
        assert should_use_basic_fulfill(parameters, total_filled=0, units_to_fill=5) is False

    @pytest.mark.parametrize(
        "offer_type,first_consideration,route",
        [
            (ItemType.ERC721, currency(ZERO_ADDRESS), BasicOrderRoute.ETH_TO_ERC721),
            (ItemType.ERC721, currency(), BasicOrderRoute.ERC20_TO_ERC721),
            (ItemType.ERC1155, currency(ZERO_ADDRESS), BasicOrderRoute.ETH_TO_ERC1155),
            (ItemType.ERC1155, currency(), BasicOrderRoute.ERC20_TO_ERC1155),
            (ItemType.ERC20, nft_consideration(), BasicOrderRoute.ERC721_TO_ERC20),
            (
                ItemType.ERC20,
                nft_consideration(item_type=ItemType.ERC1155),
                BasicOrderRoute.ERC1155_TO_ERC20,
            ),
        ],
    )
    def test_routes(self, offer_type, first_consideration, route):
        """Test that the route follows the offer and first consideration item types."""
        if offer_type == ItemType.ERC20:
            offer_item = OfferItem(offer_type, ERC20, 0, 1000, 1000)
        else:
            offer_item = OfferItem(offer_type, NFT, 1, 1, 1)
        parameters = make_parameters(offer=[offer_item], consideration=[first_consideration])

        assert should_use_basic_fulfill(parameters, total_filled=0) is True
        assert get_basic_order_route(parameters) == route


class TestHashingAndSigning:
    """Tests for EIP-712 hashing and signing."""

    def test_order_hash_deterministic(self):
        """Test that hashing is deterministic and salt-sensitive."""
        components = make_parameters().to_components(0)

        order_hash = get_order_hash(components)

        assert order_hash.startswith("0x")
        assert len(order_hash) == 66
        assert order_hash == get_order_hash(make_parameters().to_components(0))
        assert order_hash != get_order_hash(make_parameters(salt=1).to_components(0))
        assert order_hash != get_order_hash(make_parameters().to_components(1))

    def test_order_hash_matches_typed_data_struct_hash(self):
        """Test that the order hash is the EIP-712 struct hash of the components."""
        components = make_parameters().to_components(3)
        domain = create_eip712_domain(CONTRACT_ADDRESS, 1)

        signable = encode_typed_data(full_message=build_order_typed_data(domain, components))

        assert "0x" + bytes(signable.body).hex() == get_order_hash(components)

    def test_create_eip712_domain_invalid_address(self):
        """Test that invalid contract address raises error."""
        with pytest.raises(ValueError, match="Invalid contract address"):
            create_eip712_domain("invalid", 1)

    def test_sign_and_recover_round_trip(self):
        """Test that the offerer is recovered from a signed order."""
        components = make_parameters().to_components(0)
        domain = create_eip712_domain(CONTRACT_ADDRESS, 1)

        signature = sign_order(OFFERER_KEY, domain, components)

        assert len(signature) == 2 + 64 * 2
        assert recover_order_signer(signature, domain, components) == OFFERER
        assert verify_order_signature(signature, domain, components) is True

    def test_verify_rejects_wrong_signer_and_tampering(self):
        """Test that verification fails for other signers or changed orders."""
        components = make_parameters().to_components(0)
        domain = create_eip712_domain(CONTRACT_ADDRESS, 1)
        signature = sign_order(OFFERER_KEY, domain, components)

        wrong_address = Account.create().address
        assert verify_order_signature(signature, domain, components, wrong_address) is False

        tampered = make_parameters(salt=999).to_components(0)
        assert verify_order_signature(signature, domain, tampered) is False

        assert verify_order_signature("0x", domain, components) is False

    def test_compact_signature_round_trip(self):
        """Test that compacting and expanding preserves the signature."""
        account = Account.from_key(OFFERER_KEY)
        signed = account.sign_message(
            encode_typed_data(
                full_message=build_order_typed_data(
                    create_eip712_domain(CONTRACT_ADDRESS, 1),
                    make_parameters().to_components(0),
                )
            )
        )
        full = bytes(signed.signature)

        compact = compact_signature("0x" + full.hex())

        assert len(compact) == 130
        assert expand_compact_signature(compact) == full

    def test_compact_signature_invalid_length(self):
        """Test that malformed signatures raise error."""
        with pytest.raises(ValueError, match="Invalid signature length"):
            compact_signature("0x1234")


class TestGatherReads:
    """Tests for the fan-out/fan-in read primitive."""

    @pytest.mark.asyncio
    async def test_reads_run_concurrently_and_keep_order(self):
        """Test that reads are in flight together and results keep argument order."""
        first_started = asyncio.Event()

        async def first():
            first_started.set()
            await asyncio.sleep(0.01)
            return "first"

        async def second():
            # Only completes if first() is already running
            await asyncio.wait_for(first_started.wait(), timeout=1)
            return "second"

        assert await gather_reads(second(), first()) == ("second", "first")

    @pytest.mark.asyncio
    async def test_read_errors_propagate(self):
        """Test that a failing read is raised unchanged."""

        async def failing():
            raise ConnectionError("rpc down")

        async def ok():
            return 1

        with pytest.raises(ConnectionError, match="rpc down"):
            await gather_reads(ok(), failing())
