"""Address helpers shared by accessors and mappers."""
from typing import Optional

from eth_utils import is_address, to_checksum_address

from core.exceptions import InvalidAddressError

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"


def checksum_address(address: str) -> str:
    """
    Normalize an address to its EIP-55 checksummed form.

    Args:
        address: Hex address in any letter case

    Returns:
        Checksummed address

    Raises:
        InvalidAddressError: If the value is not a 20-byte hex address
    """
    if not isinstance(address, str) or not is_address(address):
        raise InvalidAddressError(f"Invalid address: {address}", details={"address": address})
    return to_checksum_address(address)


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address equality; None never matches."""
    if not a or not b:
        return False
    return a.lower() == b.lower()
