#!/usr/bin/env python3
"""
English letter-frequency scoring.

Every byte of a candidate plaintext is case-folded and looked up in a
frequency table; the score is the sum of the weights. Bytes missing from the
table contribute nothing. Higher is more English-like.
"""

from types import MappingProxyType
from typing import Mapping

# Letter distribution including the space, from
# http://www.macfreek.nl/memory/Letter_Distribution
ENGLISH_FREQUENCY = MappingProxyType({
    ' ': .18288,
    'e': .10267,
    't': .07517,
    'a': .06532,
    'o': .06160,
    'n': .05712,
    'i': .05668,
    's': .05317,
    'r': .04988,
    'h': .04979,
    'l': .03318,
    'd': .03283,
    'u': .02276,
    'c': .02234,
    'm': .02027,
    'f': .01983,
    'w': .01704,
    'g': .01625,
    'p': .01504,
    'y': .01428,
    'b': .01259,
    'v': .00796,
    'k': .00560,
    'x': .00141,
    'j': .00097,
    'q': .00084,
    'z': .00051,
})


class FrequencyScorer:
    """Scores byte strings against a fixed character-frequency table."""

    def __init__(self, table: Mapping[str, float] = ENGLISH_FREQUENCY):
        # 256-entry lookup over the case-folded byte value
        weights = [0.0] * 256
        for ch, weight in table.items():
            weights[ord(ch)] = float(weight)
        self._weights = tuple(weights)

    def score(self, text: bytes) -> float:
        weights = self._weights
        return sum(weights[b] for b in text.lower())


DEFAULT_SCORER = FrequencyScorer()


def score(text: bytes) -> float:
    """Score with the default English table."""
    return DEFAULT_SCORER.score(text)
