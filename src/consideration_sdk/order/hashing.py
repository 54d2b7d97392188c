"""Order hashing for the Consideration contract.

The order hash is the EIP-712 struct hash of the order components. It is
what the contract keys order status by, and together with the domain
separator it forms the digest the offerer signs.
"""

from typing import List, Sequence

from eth_abi import encode
from eth_utils import keccak

from .types import EIP_712_ORDER_TYPE, ConsiderationItem, OfferItem, OrderComponents


def _type_string(name: str) -> str:
    fields = ",".join(f"{field['type']} {field['name']}" for field in EIP_712_ORDER_TYPE[name])
    return f"{name}({fields})"


OFFER_ITEM_TYPE_STRING = _type_string("OfferItem")
CONSIDERATION_ITEM_TYPE_STRING = _type_string("ConsiderationItem")
# Referenced struct types are appended in alphabetical order
ORDER_COMPONENTS_TYPE_STRING = (
    _type_string("OrderComponents") + CONSIDERATION_ITEM_TYPE_STRING + OFFER_ITEM_TYPE_STRING
)

OFFER_ITEM_TYPEHASH = keccak(text=OFFER_ITEM_TYPE_STRING)
CONSIDERATION_ITEM_TYPEHASH = keccak(text=CONSIDERATION_ITEM_TYPE_STRING)
ORDER_COMPONENTS_TYPEHASH = keccak(text=ORDER_COMPONENTS_TYPE_STRING)


def hash_offer_item(item: OfferItem) -> bytes:
    return keccak(
        encode(
            ["bytes32", "uint8", "address", "uint256", "uint256", "uint256"],
            [
                OFFER_ITEM_TYPEHASH,
                int(item.item_type),
                item.token,
                item.identifier_or_criteria,
                item.start_amount,
                item.end_amount,
            ],
        )
    )


def hash_consideration_item(item: ConsiderationItem) -> bytes:
    return keccak(
        encode(
            ["bytes32", "uint8", "address", "uint256", "uint256", "uint256", "address"],
            [
                CONSIDERATION_ITEM_TYPEHASH,
                int(item.item_type),
                item.token,
                item.identifier_or_criteria,
                item.start_amount,
                item.end_amount,
                item.recipient,
            ],
        )
    )


def _hash_array(hashes: Sequence[bytes]) -> bytes:
    return keccak(b"".join(hashes))


def get_order_hash_bytes(components: OrderComponents) -> bytes:
    """Compute the EIP-712 struct hash of order components."""
    offer_hashes: List[bytes] = [hash_offer_item(item) for item in components.offer]
    consideration_hashes: List[bytes] = [
        hash_consideration_item(item) for item in components.consideration
    ]

    encoded = encode(
        [
            "bytes32",
            "address",
            "address",
            "bytes32",
            "bytes32",
            "uint8",
            "uint256",
            "uint256",
            "uint256",
            "uint256",
        ],
        [
            ORDER_COMPONENTS_TYPEHASH,
            components.offerer,
            components.zone,
            _hash_array(offer_hashes),
            _hash_array(consideration_hashes),
            int(components.order_type),
            components.start_time,
            components.end_time,
            components.salt,
            components.nonce,
        ],
    )
    return keccak(encoded)


def get_order_hash(components: OrderComponents) -> str:
    """Compute the order hash used for on-chain status lookups.

    Args:
        components: Order parameters plus nonce

    Returns:
        bytes32 hex string order hash
    """
    return "0x" + get_order_hash_bytes(components).hex()
