#!/usr/bin/env python3
"""
AES-128 CBC bit-flipping.

A service encrypts
  "comment1=cooking%20MCs;userdata=" || input || ";comment2=%20like%20a%20pound%20of%20bacon"
with ';' and '=' escaped in the input, and treats any plaintext containing
";admin=true;" as an admin session.

Principle:
  - In CBC mode: P[i] = D(C[i]) ^ C[i-1]
  - XOR-ing byte p of C[i-1] with a delta XORs byte p of P[i] with the same
    delta (and scrambles P[i-1], which we do not care about).
  - Send "XadminXtrue" block-aligned, then flip each 'X' into ';' or '='
    through the previous ciphertext block.

Usage: python3 -m blockattack.attack.aes.cbc.bitflip
"""

from typing import Callable

from Crypto.Random import get_random_bytes

from blockattack.modes import BLOCK_SIZE, decrypt_cbc, encrypt_cbc
from blockattack.padding import pad

PREFIX = b"comment1=cooking%20MCs;userdata="
SUFFIX = b";comment2=%20like%20a%20pound%20of%20bacon"
ADMIN_MARKER = b";admin=true;"
DELIMITERS = b";="
PLACEHOLDER = ord("X")
FILLER = b"A"


class CommentService:
    """Encrypts user data between a fixed prefix and suffix; key and IV stay private."""

    def __init__(self, prefix: bytes = PREFIX, suffix: bytes = SUFFIX):
        self.__key = get_random_bytes(16)
        self.__iv = get_random_bytes(BLOCK_SIZE)
        self.prefix = prefix
        self.suffix = suffix

    def encrypt(self, userdata: bytes) -> bytes:
        userdata = userdata.replace(b";", b"%3B").replace(b"=", b"%3D")
        return encrypt_cbc(self.__key, self.__iv,
                           pad(self.prefix + userdata + self.suffix, BLOCK_SIZE))

    def is_admin(self, ciphertext: bytes) -> bool:
        if len(ciphertext) == 0 or len(ciphertext) % BLOCK_SIZE != 0:
            return False
        return ADMIN_MARKER in decrypt_cbc(self.__key, self.__iv, ciphertext)


def _first_changed_block(a: bytes, b: bytes, block_size: int) -> int:
    for i in range(0, min(len(a), len(b)), block_size):
        if a[i:i + block_size] != b[i:i + block_size]:
            return i // block_size
    return min(len(a), len(b)) // block_size


def find_input_offset(oracle: Callable[[bytes], bytes], block_size: int = BLOCK_SIZE) -> int:
    """
    Where our input lands in the plaintext.

    The first ciphertext block that changes with the input is the one our
    first byte sits in. Pushing the varying byte forward one position at a
    time, it leaves that block once it has crossed the boundary.
    """
    bs = block_size
    block = _first_changed_block(oracle(b"X"), oracle(b"Y"), bs)
    start, end = block * bs, (block + 1) * bs

    for k in range(1, bs + 1):
        if oracle(FILLER * k + b"X")[start:end] == oracle(FILLER * k + b"Y")[start:end]:
            return start + bs - k
    return start


def forge_admin(oracle: Callable[[bytes], bytes], target: bytes = ADMIN_MARKER,
                block_size: int = BLOCK_SIZE, delimiters: bytes = DELIMITERS,
                verbose: bool = False) -> bytes:
    """Ciphertext whose decryption contains target despite the escaping."""
    bs = block_size
    if len(target) > bs:
        raise ValueError(f"payload of {len(target)} bytes does not fit in one {bs}-byte block")

    offset = find_input_offset(oracle, bs)
    filler = FILLER * (-offset % bs)
    block = (offset + len(filler)) // bs
    if block == 0:
        # the block before ours would be the IV, spend one block of filler
        filler += FILLER * bs
        block = 1
    if verbose:
        print(f"[+] Input starts at byte {offset}, payload goes in block {block}")

    payload = bytes(PLACEHOLDER if b in delimiters else b for b in target)
    ciphertext = bytearray(oracle(filler + payload))

    previous = (block - 1) * bs
    for p, b in enumerate(target):
        if b in delimiters:
            ciphertext[previous + p] ^= PLACEHOLDER ^ b
    return bytes(ciphertext)


if __name__ == "__main__":
    print("AES-128 CBC bit-flipping\n")

    service = CommentService()
    honest = service.encrypt(b";admin=true;")
    print("[*] Escaped input grants admin ?", service.is_admin(honest))

    forged = forge_admin(service.encrypt, verbose=True)
    print("[+] Forged ciphertext:", forged.hex())
    print("[+] Admin ?", service.is_admin(forged))
