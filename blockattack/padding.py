"""PKCS#7 padding. Invalid padding is a result (None), never an exception."""

from typing import Optional

from Crypto.Util import Padding

from blockattack.modes import BLOCK_SIZE


def pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """Append 1..block_size bytes, each equal to the number of bytes added."""
    return Padding.pad(data, block_size, style="pkcs7")


def unpad(data: bytes, block_size: int = BLOCK_SIZE) -> Optional[bytes]:
    """Strip PKCS#7 padding, or return None if it is malformed."""
    try:
        return Padding.unpad(data, block_size, style="pkcs7")
    except ValueError:
        return None


def is_valid(data: bytes, block_size: int = BLOCK_SIZE) -> bool:
    return unpad(data, block_size) is not None
