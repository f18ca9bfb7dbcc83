"""Ten-bit address marking."""

from typing import Tuple

from .constants import TEN_BIT_MASK


def ten_bit(address: int) -> int:
    """Mark an I2C address as a 10-bit address."""
    return address | TEN_BIT_MASK


def resolve_address(address: int) -> Tuple[int, bool]:
    """Return the unmasked address and whether it was marked 10-bit."""
    return address & (TEN_BIT_MASK - 1), address & TEN_BIT_MASK == TEN_BIT_MASK
