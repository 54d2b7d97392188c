"""Offline Order Signing Example.

This example builds an order selling an NFT for ETH with a 2.5% marketplace
fee, signs it with a local key and checks the signature, without touching
the network. Use the Consideration client to plan approvals and submit
fulfillments against a live chain.

Prerequisites:
1. pip install consideration-sdk
2. Optionally set PRIVATE_KEY (a throwaway key is used otherwise)

Usage:
    python sign_order_offline.py
"""

import os
import time

from eth_account import Account

from consideration_sdk.order import (
    MAX_INT,
    ZERO_ADDRESS,
    ConsiderationItem,
    Fee,
    ItemType,
    OfferItem,
    OrderParameters,
    OrderType,
    apply_fees,
    create_eip712_domain,
    format_bps,
    generate_random_salt,
    get_order_hash,
    sign_order,
    verify_order_signature,
)

CONTRACT_ADDRESS = "0x00000000006cee72100d161c57ada5bb2be1ca79"
NFT_ADDRESS = "0x8a90cab2b38dba80c64b7734e58ee1db38b8992e"
MARKETPLACE = "0x5b3256965e7c3cf26e11fcaf296dfc8807c01073"


def main():
    private_key = os.environ.get("PRIVATE_KEY") or Account.create().key.hex()
    offerer = Account.from_key(private_key).address

    print("=" * 60)
    print("  OFFLINE ORDER SIGNING")
    print("=" * 60)

    offer = [OfferItem(ItemType.ERC721, NFT_ADDRESS, 1, 1, 1)]
    consideration = [
        ConsiderationItem(ItemType.NATIVE, ZERO_ADDRESS, 0, 10**18, 10**18, offerer)
    ]

    fee = Fee(recipient=MARKETPLACE, basis_points=250)
    offer, consideration = apply_fees(offer, consideration, [fee])

    parameters = OrderParameters(
        offerer=offerer,
        zone=ZERO_ADDRESS,
        order_type=OrderType.FULL_OPEN,
        start_time=int(time.time()),
        end_time=MAX_INT,
        offer=offer,
        consideration=consideration,
        salt=generate_random_salt(),
    )
    components = parameters.to_components(nonce=0)
    domain = create_eip712_domain(CONTRACT_ADDRESS, chain_id=1)

    print(f"\n[1] Offerer: {offerer}")
    print(f"    Seller receives: {consideration[0].start_amount} wei")
    print(f"    Fee ({format_bps(fee.basis_points)}): {consideration[1].start_amount} wei")

    signature = sign_order(private_key, domain, components)
    print(f"\n[2] Order hash: {get_order_hash(components)}")
    print(f"    Signature:  {signature[:20]}...")

    assert verify_order_signature(signature, domain, components)
    print("\n[3] Signature verified")


if __name__ == "__main__":
    main()
