#!/usr/bin/env python3
"""
Breaking single-byte and repeating-key XOR.

Principle:
  1. Single-byte key: try all 256 keys, keep the decryption that scores best
     against English letter frequencies.
  2. Key length: English XOR'd with the same key bytes keeps a low Hamming
     distance between blocks aligned on the key length. For each length L in
     [2, 40), average the distance between the first L bytes and every later
     L-byte block, normalized by L; the lowest value wins.
  3. Repeating key: transpose the ciphertext into L columns (column i holds
     the bytes at positions i mod L), each column is single-byte XOR.

Usage: python3 -m blockattack.attack.xor.repeating_key <base64 file>
"""

import base64
import binascii
import sys
from typing import Iterable, List, NamedTuple, Optional, Tuple

from blockattack.attack.xor.frequency import DEFAULT_SCORER, FrequencyScorer

MIN_KEY_LENGTH = 2
MAX_KEY_LENGTH = 40  # exclusive
KEY_LENGTH_TOLERANCE = 0.10


class KeyGuess(NamedTuple):
    key: bytes
    score: float
    plaintext: bytes


def hex_to_base64(hexstr: str) -> str:
    return base64.b64encode(binascii.unhexlify(hexstr)).decode()


def xor_bytes(data: bytes, key: bytes) -> bytes:
    """XOR data with key, repeating the key as needed."""
    return bytes(data[i] ^ key[i % len(key)] for i in range(len(data)))


def single_xor(data: bytes, key: int) -> bytes:
    return bytes(b ^ key for b in data)


repeating_key_xor = xor_bytes


def hamming_distance(x: bytes, y: bytes) -> int:
    """Number of differing bits between two equal-length byte strings."""
    if len(x) != len(y):
        raise ValueError(f"Hamming distance needs equal lengths ({len(x)} != {len(y)})")
    return sum(bin(a ^ b).count("1") for a, b in zip(x, y))


def guess_single_byte_key(ciphertext: bytes,
                          scorer: FrequencyScorer = DEFAULT_SCORER) -> KeyGuess:
    """Best single-byte key for ciphertext. The first maximum wins on ties."""
    best_key, best_score = 0, -1.0
    for key in range(256):
        s = scorer.score(single_xor(ciphertext, key))
        if s > best_score:
            best_key, best_score = key, s
    return KeyGuess(bytes([best_key]), best_score, single_xor(ciphertext, best_key))


def find_single_byte_xor_line(lines: Iterable[bytes],
                              scorer: FrequencyScorer = DEFAULT_SCORER) -> Optional[KeyGuess]:
    """Among several ciphertexts, the one that decrypts most like English."""
    best = None
    for line in lines:
        guess = guess_single_byte_key(line, scorer)
        if best is None or guess.score > best.score:
            best = guess
    return best


def _average_distance(ciphertext: bytes, length: int) -> Optional[float]:
    first = ciphertext[:length]
    distances = [
        hamming_distance(first, ciphertext[start:start + length])
        for start in range(length, len(ciphertext) - length + 1, length)
    ]
    if not distances:
        return None
    return sum(distances) / len(distances)


def rank_key_lengths(ciphertext: bytes,
                     min_length: int = MIN_KEY_LENGTH,
                     max_length: int = MAX_KEY_LENGTH) -> List[Tuple[int, float]]:
    """(length, normalized distance) pairs, most plausible first."""
    scores = []
    for length in range(min_length, max_length):
        avg = _average_distance(ciphertext, length)
        if avg is not None:
            scores.append((length, avg / length))
    # sorted() is stable: equal scores keep the shorter length first
    return sorted(scores, key=lambda t: t[1])


def estimate_key_length(ciphertext: bytes,
                        min_length: int = MIN_KEY_LENGTH,
                        max_length: int = MAX_KEY_LENGTH) -> Optional[int]:
    """
    Most plausible key length.

    Multiples of the real length are aligned on the key too and score about
    as well, so the shortest divisor of the best length that scores within
    KEY_LENGTH_TOLERANCE of it is preferred.
    """
    ranking = rank_key_lengths(ciphertext, min_length, max_length)
    if not ranking:
        return None

    best_length, best_score = ranking[0]
    scores = dict(ranking)
    for length in sorted(scores):
        if best_length % length == 0 and scores[length] <= best_score * (1 + KEY_LENGTH_TOLERANCE):
            return length
    return best_length


def transpose(data: bytes, length: int) -> List[bytes]:
    return [data[i::length] for i in range(length)]


def recover_repeating_key(ciphertext: bytes, length: int,
                          scorer: FrequencyScorer = DEFAULT_SCORER) -> bytes:
    return b"".join(guess_single_byte_key(column, scorer).key
                    for column in transpose(ciphertext, length))


def break_repeating_key_xor(ciphertext: bytes,
                            scorer: FrequencyScorer = DEFAULT_SCORER) -> Optional[KeyGuess]:
    length = estimate_key_length(ciphertext)
    if length is None:
        return None
    key = recover_repeating_key(ciphertext, length, scorer)
    plaintext = xor_bytes(ciphertext, key)
    return KeyGuess(key, scorer.score(plaintext), plaintext)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python3 -m blockattack.attack.xor.repeating_key <base64 file>")
        sys.exit(1)

    with open(sys.argv[1], "rb") as f:
        data = base64.b64decode(f.read())

    print("[*] Key length ranking:", rank_key_lengths(data)[:5])
    result = break_repeating_key_xor(data)
    if result is None:
        print("[-] Ciphertext too short")
        sys.exit(1)
    print(f"[+] Key: {result.key!r}")
    print(result.plaintext.decode(errors="replace"))
