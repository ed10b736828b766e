#!/usr/bin/env python3
"""
ECB detection - identical plaintext blocks give identical ciphertext blocks.

Any repeated block-aligned window in a ciphertext is a strong hint of ECB:
under CBC/CTR a collision of two 16-byte blocks is negligible.
"""

from typing import Callable, Iterable, List, Optional

from blockattack.modes import BLOCK_SIZE

REPEAT_BYTE = b"A"


def find_repeated_block(ciphertext: bytes, block_size: int = BLOCK_SIZE) -> Optional[int]:
    """Offset of the first block that occurs again later, or None."""
    seen = {}
    for offset in range(0, len(ciphertext) - block_size + 1, block_size):
        block = ciphertext[offset:offset + block_size]
        if block in seen:
            return seen[block]
        seen[block] = offset
    return None


def is_ecb(ciphertext: bytes, block_size: int = BLOCK_SIZE) -> bool:
    return find_repeated_block(ciphertext, block_size) is not None


def detect_ecb_lines(lines: Iterable[bytes], block_size: int = BLOCK_SIZE) -> List[int]:
    """Indices of the ciphertexts that look ECB encrypted."""
    return [i for i, line in enumerate(lines) if is_ecb(line, block_size)]


def detect_mode(oracle: Callable[[bytes], bytes], block_size: int = BLOCK_SIZE) -> str:
    """
    Tell an ECB oracle from a CBC one with a single query.

    Three blocks of a repeated byte always contain two aligned identical
    blocks, whatever the oracle puts in front (as long as it is shorter than
    a block).
    """
    ciphertext = oracle(REPEAT_BYTE * (block_size * 3))
    return "ECB" if is_ecb(ciphertext, block_size) else "CBC"
