"""Utility functions for Consideration orders."""

import asyncio
import secrets
from typing import Any, Awaitable, Tuple

# Contract EIP-712 domain
CONSIDERATION_CONTRACT_NAME = "Consideration"
CONSIDERATION_CONTRACT_VERSION = "rc.1"

# Zero address
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# uint256 max, used as the "never ends" end time and unlimited ERC20 allowance
MAX_INT = 2**256 - 1

# Signature of an order that has already been validated on-chain
NO_SIGNATURE = "0x"

BASIS_POINTS_DENOMINATOR = 10000


def generate_random_salt() -> int:
    """Generate a random salt so otherwise identical orders hash differently.

    Returns:
        Random 128-bit integer
    """
    return secrets.randbits(128)


def multiply_basis_points(amount: int, basis_points: int) -> int:
    """Take a basis point share of an amount, rounding down.

    Args:
        amount: Amount in the token's smallest unit
        basis_points: Share in basis points (e.g., 250 = 2.5%)

    Returns:
        floor(amount * basis_points / 10000)
    """
    return (amount * basis_points) // BASIS_POINTS_DENOMINATOR


def format_bps(bps: int) -> str:
    """Format basis points to percentage string.

    Args:
        bps: Basis points (e.g., 25 = 0.25%)

    Returns:
        Percentage string (e.g., "0.25%")
    """
    return f"{bps / 100}%"


def is_same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


async def gather_reads(*reads: Awaitable[Any]) -> Tuple[Any, ...]:
    """Issue independent chain reads together and wait for all of them.

    Reads must not depend on each other's results. Issuing them in one
    batch lets a multicall transport collapse them into a single round
    trip. Results come back in argument order; the first failure is raised.
    """
    return tuple(await asyncio.gather(*reads))
