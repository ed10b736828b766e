#!/usr/bin/env python3
"""
ECB Oracle Attack - Byte-by-byte attack to recover secret
Exploits ECB mode deterministic encryption weakness

The oracle returns ECB(pad(input || secret)). Feeding it a filler one byte
short of a block boundary pushes the next unknown secret byte to the end of a
block whose other bytes are all known; trying every candidate for that last
byte and comparing ciphertext blocks reveals it.

A random prefix in front of the input (PrependECBOracle) is handled by
padding it out to a block boundary and throwing its blocks away.

Usage: python3 -m blockattack.attack.aes.ecb.oracle_attack
"""

from typing import Callable, Iterable, Optional

from tqdm import tqdm

from blockattack.attack.aes.ecb.detection import find_repeated_block, is_ecb
from blockattack.attack.probing import probe

EncryptOracle = Callable[[bytes], bytes]

FILLER = b"A"
MIN_BLOCK_SIZE = 3
MAX_BLOCK_SIZE = 64  # exclusive
ASCII = range(128)


def find_block_size(oracle: EncryptOracle) -> Optional[int]:
    """Smallest size at which three blocks of filler show up as repeated ECB blocks."""
    for size in range(MIN_BLOCK_SIZE, MAX_BLOCK_SIZE):
        if is_ecb(oracle(FILLER * (size * 3)), size):
            return size
    return None


def find_secret_length(oracle: EncryptOracle, block_size: int) -> int:
    """Detects secret length by observing when padding causes a new block"""
    initial_length = len(oracle(b""))

    for i in range(1, block_size + 1):
        if len(oracle(FILLER * i)) > initial_length:
            return initial_length - i

    return initial_length


def byte_at_a_time(oracle: EncryptOracle, block_size: Optional[int] = None,
                   candidates: Iterable[int] = ASCII, workers: int = 1,
                   verbose: bool = False) -> bytes:
    """
    Recover as many bytes as the oracle outputs for an empty input.

    The result still carries whatever padding remnants follow the secret;
    decrypt_append_oracle trims them.
    """
    if block_size is None:
        block_size = find_block_size(oracle)
    if block_size is None:
        if verbose:
            print("[-] No repeated block found, the oracle does not look like ECB")
        return b""

    candidates = tuple(candidates)
    bs = block_size
    total = len(oracle(b""))
    recovered = bytearray()

    for i in tqdm(range(total), desc="ECB bytes", disable=not verbose):
        # Align target byte to end of block
        filler = FILLER * ((bs - i - 1) % bs)
        block = i // bs
        found = None

        if block == 0:
            known = filler + bytes(recovered[:i])
            blocks = probe(lambda c: oracle(known + bytes([c]))[:bs], candidates, workers)
            table = {}
            for c, ct in zip(candidates, blocks):
                table.setdefault(ct, c)
            found = table.get(oracle(filler)[:bs])
        else:
            reference = oracle(filler)[block * bs:(block + 1) * bs]
            window = bytes(recovered[i - bs + 1:i])
            blocks = probe(lambda c: oracle(window + bytes([c]))[:bs], candidates, workers)
            for c, ct in zip(candidates, blocks):
                if ct == reference:
                    found = c
                    break

        if found is None:
            # usually the secret is over and we are walking the padding
            found = len(filler)
        recovered.append(found)

    if verbose:
        print(f"[+] Recovered {len(recovered)} bytes")
    return bytes(recovered)


def decrypt_append_oracle(oracle: EncryptOracle, block_size: Optional[int] = None,
                          candidates: Iterable[int] = ASCII, workers: int = 1,
                          verbose: bool = False) -> bytes:
    """Recover the secret an ECB oracle appends to its input."""
    if block_size is None:
        block_size = find_block_size(oracle)
    if block_size is None:
        return b""
    if verbose:
        print(f"[+] Block size: {block_size} bytes")

    secret_length = find_secret_length(oracle, block_size)
    if verbose:
        print(f"[+] Secret length: {secret_length} bytes")

    raw = byte_at_a_time(oracle, block_size, candidates, workers, verbose)
    return raw[:secret_length]


def find_prefix_alignment(oracle: EncryptOracle, block_size: int):
    """
    Locate the first block the attacker fully controls.

    Returns (offset, filler_length): prepending filler_length filler bytes
    to any input makes it start exactly at offset in the plaintext.
    """
    bs = block_size

    # a prefix ending in the repeated byte pulls its run one block early,
    # it cannot end in two different bytes at once
    offsets = [find_repeated_block(oracle(byte * (bs * 3)), bs) for byte in (b"A", b"B")]
    if None in offsets:
        return None
    offset = max(offsets)
    if offset == 0:
        return 0, 0

    # n filler bytes complete the prefix block once the byte after them no
    # longer changes that block
    for n in range(bs):
        before = oracle(FILLER * n + b"X")[offset - bs:offset]
        if before == oracle(FILLER * n + b"Y")[offset - bs:offset]:
            return offset, n
    return offset, bs - 1


def decrypt_prepend_oracle(oracle: EncryptOracle, block_size: Optional[int] = None,
                           candidates: Iterable[int] = ASCII, workers: int = 1,
                           verbose: bool = False) -> bytes:
    """Recover the secret of an ECB oracle that also prepends a fixed random prefix."""
    if block_size is None:
        block_size = find_block_size(oracle)
    if block_size is None:
        if verbose:
            print("[-] No repeated block found, the oracle does not look like ECB")
        return b""

    alignment = find_prefix_alignment(oracle, block_size)
    if alignment is None:
        return b""
    offset, needed = alignment
    if verbose:
        print(f"[+] Controlled input starts at block {offset // block_size} "
              f"after {needed} filler bytes")

    def aligned_oracle(data: bytes) -> bytes:
        return oracle(FILLER * needed + data)[offset:]

    return decrypt_append_oracle(aligned_oracle, block_size, candidates, workers, verbose)


def main():
    from blockattack.attack.aes.ecb.oracles import AppendECBOracle, PrependECBOracle

    secret = b"Rollin' in my 5.0\nWith my rag-top down so my hair can blow\n"

    print("[*] Starting ECB Oracle Attack (appended secret)...")
    recovered = decrypt_append_oracle(AppendECBOracle(secret), verbose=True)
    print(f"\n[+] Recovered: {recovered!r}")
    print(f"    Match ? {recovered == secret}\n")

    print("[*] Starting ECB Oracle Attack (random prefix)...")
    recovered = decrypt_prepend_oracle(PrependECBOracle(secret), verbose=True)
    print(f"\n[+] Recovered: {recovered!r}")
    print(f"    Match ? {recovered == secret}")


if __name__ == "__main__":
    main()
