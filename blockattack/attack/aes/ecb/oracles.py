#!/usr/bin/env python3
"""
Vulnerable ECB encryption services, simulated in-process.

Each oracle draws its AES key once with Crypto.Random and keeps it private;
callers only ever see ciphertext. Calling the oracle with attacker-chosen
bytes returns AES-ECB(pad(<layout>)), where the layout is
  - AppendECBOracle:  input || secret
  - PrependECBOracle: random prefix || input || secret
  - RandomModeOracle: 5-10 random bytes || input || 5-10 random bytes,
                      ECB or CBC picked at random on every call
"""

from Crypto.Random import get_random_bytes, random

from blockattack.modes import BLOCK_SIZE, encrypt_cbc, encrypt_ecb
from blockattack.padding import pad

KEY_SIZE = 16
MAX_PREFIX = 128


class AppendECBOracle:
    """Encrypts input || secret under a fixed random key."""

    def __init__(self, secret: bytes):
        self.__key = get_random_bytes(KEY_SIZE)
        self.__secret = secret

    def __call__(self, data: bytes) -> bytes:
        return encrypt_ecb(self.__key, pad(data + self.__secret, BLOCK_SIZE))


class PrependECBOracle:
    """Encrypts prefix || input || secret; the random prefix is fixed per oracle."""

    def __init__(self, secret: bytes, prefix_length: int = None, prefix: bytes = None):
        if prefix is None:
            if prefix_length is None:
                prefix_length = random.randrange(MAX_PREFIX)
            prefix = get_random_bytes(prefix_length)
        self.__key = get_random_bytes(KEY_SIZE)
        self.__prefix = prefix
        self.__secret = secret

    def __call__(self, data: bytes) -> bytes:
        return encrypt_ecb(self.__key, pad(self.__prefix + data + self.__secret, BLOCK_SIZE))


class RandomModeOracle:
    """
    Coin-flip ECB/CBC oracle.

    The mode of the last call is kept in `last_mode` so a harness can score
    a detector against it; the key and IVs are not exposed.
    """

    def __init__(self):
        self.__key = get_random_bytes(KEY_SIZE)
        self.last_mode = None

    def __call__(self, data: bytes) -> bytes:
        before = get_random_bytes(random.randint(5, 10))
        after = get_random_bytes(random.randint(5, 10))
        plaintext = pad(before + data + after, BLOCK_SIZE)

        if random.randrange(2) == 0:
            self.last_mode = "ECB"
            return encrypt_ecb(self.__key, plaintext)

        self.last_mode = "CBC"
        return encrypt_cbc(self.__key, get_random_bytes(BLOCK_SIZE), plaintext)
