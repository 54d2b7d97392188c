"""Order Signing for the Consideration contract.

Provides EIP-712 signing functions that work with various wallet types:
- eth_account.Account (direct signing)
- Any signer implementing the Signer protocol (hardware, remote wallets, etc.)

Signatures are returned in the EIP-2098 compact 64-byte form to save gas.
"""

from typing import Any, Dict, Optional, Protocol, TypedDict

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import is_address, to_bytes, to_checksum_address, to_hex

from .types import EIP_712_ORDER_TYPE, Item, OrderComponents
from .utils import CONSIDERATION_CONTRACT_NAME, CONSIDERATION_CONTRACT_VERSION

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

_S_MASK = (1 << 255) - 1


class EIP712Domain(TypedDict):
    """EIP-712 domain separator."""

    name: str
    version: str
    chainId: int
    verifyingContract: str


class Signer(Protocol):
    """Protocol for account signers used by the SDK."""

    async def get_address(self) -> str:
        """Get the signer's address."""
        ...

    async def sign_typed_data(self, params: Dict[str, Any]) -> str:
        """Sign EIP-712 typed data.

        Args:
            params: Dict with domain, types, primaryType, and message

        Returns:
            Signature as hex string
        """
        ...

    async def send_transaction(self, transaction: Dict[str, Any]) -> Any:
        """Submit a transaction from the signer's account.

        Args:
            transaction: Dict with to, data and value

        Returns:
            Whatever the transport returns once the transaction is confirmed
        """
        ...


def create_eip712_domain(contract_address: str, chain_id: int) -> EIP712Domain:
    """Create EIP-712 domain for the Consideration contract.

    Args:
        contract_address: Address of the Consideration contract
        chain_id: Chain ID

    Returns:
        EIP-712 domain dictionary

    Raises:
        ValueError: If contract address is invalid
    """
    if not is_address(contract_address):
        raise ValueError(f"Invalid contract address: {contract_address}")

    return {
        "name": CONSIDERATION_CONTRACT_NAME,
        "version": CONSIDERATION_CONTRACT_VERSION,
        "chainId": chain_id,
        "verifyingContract": to_checksum_address(contract_address),
    }


def _item_to_message(item: Item) -> Dict[str, Any]:
    message = {
        "itemType": int(item.item_type),
        "token": item.token,
        "identifierOrCriteria": item.identifier_or_criteria,
        "startAmount": item.start_amount,
        "endAmount": item.end_amount,
    }
    recipient = getattr(item, "recipient", None)
    if recipient is not None:
        message["recipient"] = recipient
    return message


def order_components_to_message(components: OrderComponents) -> Dict[str, Any]:
    """Build the EIP-712 message for order components."""
    return {
        "offerer": components.offerer,
        "zone": components.zone,
        "offer": [_item_to_message(item) for item in components.offer],
        "consideration": [_item_to_message(item) for item in components.consideration],
        "orderType": int(components.order_type),
        "startTime": components.start_time,
        "endTime": components.end_time,
        "salt": components.salt,
        "nonce": components.nonce,
    }


def build_order_typed_data(domain: EIP712Domain, components: OrderComponents) -> Dict[str, Any]:
    """Build the full EIP-712 typed data structure for order components."""
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, **EIP_712_ORDER_TYPE},
        "primaryType": "OrderComponents",
        "domain": domain,
        "message": order_components_to_message(components),
    }


def compact_signature(signature: str) -> str:
    """Convert a 65-byte signature to its EIP-2098 64-byte form.

    Args:
        signature: r || s || v hex string

    Returns:
        r || (y_parity << 255 | s) hex string

    Raises:
        ValueError: If the signature is not 64 or 65 bytes
    """
    raw = to_bytes(hexstr=signature)
    if len(raw) == 64:
        return to_hex(raw)
    if len(raw) != 65:
        raise ValueError(f"Invalid signature length: {len(raw)} bytes")

    r, s, v = raw[:32], int.from_bytes(raw[32:64], "big"), raw[64]
    y_parity = v - 27 if v >= 27 else v
    if y_parity not in (0, 1):
        raise ValueError(f"Invalid signature v: {v}")

    y_parity_and_s = (y_parity << 255) | s
    return to_hex(r + y_parity_and_s.to_bytes(32, "big"))


def expand_compact_signature(signature: str) -> bytes:
    """Convert an EIP-2098 compact signature back to r || s || v bytes."""
    raw = to_bytes(hexstr=signature)
    if len(raw) == 65:
        return raw
    if len(raw) != 64:
        raise ValueError(f"Invalid signature length: {len(raw)} bytes")

    y_parity_and_s = int.from_bytes(raw[32:], "big")
    y_parity = y_parity_and_s >> 255
    s = y_parity_and_s & _S_MASK
    return raw[:32] + s.to_bytes(32, "big") + bytes([27 + y_parity])


def sign_order(
    private_key: str,
    domain: EIP712Domain,
    components: OrderComponents,
) -> str:
    """Sign order components with EIP-712 using a private key.

    Use this when you have direct access to a private key.

    Returns:
        Compact (EIP-2098) signature hex string
    """
    account = Account.from_key(private_key)
    signed_message = account.sign_typed_data(
        domain_data=dict(domain),
        message_types=EIP_712_ORDER_TYPE,
        message_data=order_components_to_message(components),
    )
    return compact_signature(to_hex(signed_message.signature))


async def sign_order_with_signer(
    signer: Signer,
    domain: EIP712Domain,
    components: OrderComponents,
) -> str:
    """Sign order components with EIP-712 using any compatible signer.

    Args:
        signer: Signer that implements the Signer protocol
        domain: Domain of the Consideration contract
        components: Order parameters plus nonce

    Returns:
        Compact (EIP-2098) signature hex string
    """
    signature = await signer.sign_typed_data(
        {
            "domain": domain,
            "types": EIP_712_ORDER_TYPE,
            "primaryType": "OrderComponents",
            "message": order_components_to_message(components),
        }
    )
    return compact_signature(signature)


def recover_order_signer(
    signature: str,
    domain: EIP712Domain,
    components: OrderComponents,
) -> str:
    """Recover the address that signed order components.

    Accepts both compact and 65-byte signatures.
    """
    signable_message = encode_typed_data(full_message=build_order_typed_data(domain, components))
    return Account.recover_message(
        signable_message, signature=expand_compact_signature(signature)
    )


def verify_order_signature(
    signature: str,
    domain: EIP712Domain,
    components: OrderComponents,
    expected_signer: Optional[str] = None,
) -> bool:
    """Verify an order signature locally (for EOA signatures).

    Note: This only works for EOA signatures. Contract wallets are
    verified on-chain via EIP-1271.

    Args:
        signature: Order signature (compact or 65 bytes)
        domain: Domain of the Consideration contract
        components: Signed order components
        expected_signer: Expected signer (default: the offerer)

    Returns:
        True if signature is valid and from expected signer
    """
    expected = expected_signer or components.offerer
    try:
        recovered = recover_order_signer(signature, domain, components)
    except Exception:
        return False
    return recovered.lower() == expected.lower()
