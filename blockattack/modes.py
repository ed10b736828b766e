#!/usr/bin/env python3
"""
ECB, CBC and CTR built block by block on top of raw AES.

  - ECB: C[i] = E(P[i])
  - CBC: C[i] = E(P[i] ^ C[i-1]), C[-1] = IV
         P[i] = D(C[i]) ^ C[i-1]
  - CTR: keystream block i = E(nonce || little-endian counter i)

The block cipher is only ever called on a single block, so any codec exposing
block_size / encrypt_block / decrypt_block can stand in for AES.
"""

from functools import lru_cache

from Crypto.Cipher import AES

BLOCK_SIZE = AES.block_size


class BlockModeError(ValueError):
    """Caller handed a mode function a buffer it cannot process."""


class MisalignedInputError(BlockModeError):
    pass


class InvalidIVLengthError(BlockModeError):
    pass


@lru_cache(maxsize=32)
def _ecb_cipher(key: bytes):
    # raw ECB objects keep no state between calls, one per key is enough
    return AES.new(key, AES.MODE_ECB)


class AESCodec:
    """Single-block AES, the primitive every mode below is built on."""

    block_size = BLOCK_SIZE

    def _check(self, block: bytes):
        if len(block) != self.block_size:
            raise MisalignedInputError(
                f"AES works on {self.block_size}-byte blocks, got {len(block)} bytes")

    def encrypt_block(self, key: bytes, block: bytes) -> bytes:
        self._check(block)
        return _ecb_cipher(key).encrypt(block)

    def decrypt_block(self, key: bytes, block: bytes) -> bytes:
        self._check(block)
        return _ecb_cipher(key).decrypt(block)


DEFAULT_CODEC = AESCodec()


def xor(a: bytes, b: bytes) -> bytes:
    """XOR two buffers up to the length of the shorter one."""
    return bytes(x ^ y for x, y in zip(a, b))


def split_blocks(data: bytes, block_size: int = BLOCK_SIZE) -> list:
    """Cut data into block_size chunks (the last one may be short)."""
    return [data[i:i + block_size] for i in range(0, len(data), block_size)]


def _check_aligned(data: bytes, block_size: int):
    if len(data) % block_size != 0:
        raise MisalignedInputError(
            f"input length {len(data)} is not a multiple of the block size {block_size}")


def _check_iv(iv: bytes, block_size: int):
    if len(iv) != block_size:
        raise InvalidIVLengthError(f"IV must be {block_size} bytes, got {len(iv)}")


def encrypt_ecb(key: bytes, data: bytes, codec=DEFAULT_CODEC) -> bytes:
    bs = codec.block_size
    _check_aligned(data, bs)
    return b"".join(codec.encrypt_block(key, block) for block in split_blocks(data, bs))


def decrypt_ecb(key: bytes, data: bytes, codec=DEFAULT_CODEC) -> bytes:
    bs = codec.block_size
    _check_aligned(data, bs)
    return b"".join(codec.decrypt_block(key, block) for block in split_blocks(data, bs))


def encrypt_cbc(key: bytes, iv: bytes, data: bytes, codec=DEFAULT_CODEC) -> bytes:
    """CBC-encrypt block-aligned data. The IV is not included in the output."""
    bs = codec.block_size
    _check_iv(iv, bs)
    _check_aligned(data, bs)

    previous = iv
    out = []
    for block in split_blocks(data, bs):
        previous = codec.encrypt_block(key, xor(block, previous))
        out.append(previous)
    return b"".join(out)


def decrypt_cbc(key: bytes, iv: bytes, data: bytes, codec=DEFAULT_CODEC) -> bytes:
    bs = codec.block_size
    _check_iv(iv, bs)
    _check_aligned(data, bs)

    previous = iv
    out = []
    for block in split_blocks(data, bs):
        # chain on the raw ciphertext, never on the recovered plaintext
        out.append(xor(codec.decrypt_block(key, block), previous))
        previous = block
    return b"".join(out)


def ctr_keystream(key: bytes, nonce: bytes, length: int, codec=DEFAULT_CODEC) -> bytes:
    """
    Keystream of the given length.

    Each counter block is nonce || counter, the counter filling the rest of
    the block in little-endian order (an 8-byte nonce leaves a 64-bit counter).
    """
    bs = codec.block_size
    if len(nonce) >= bs:
        raise InvalidIVLengthError(
            f"CTR nonce must be shorter than the {bs}-byte block, got {len(nonce)}")

    width = bs - len(nonce)
    stream = bytearray()
    counter = 0
    while len(stream) < length:
        stream += codec.encrypt_block(key, nonce + counter.to_bytes(width, "little"))
        counter += 1
    return bytes(stream[:length])


def encrypt_ctr(key: bytes, nonce: bytes, data: bytes, codec=DEFAULT_CODEC) -> bytes:
    """CTR works on any length; encryption and decryption are the same XOR."""
    return xor(data, ctr_keystream(key, nonce, len(data), codec))


decrypt_ctr = encrypt_ctr
