"""Spelling-based rhyme patterns.

A rhyme pattern is the last four characters of a word (three for three-letter
words).  It is a deliberately crude stand-in for the word's final sound: no
pronunciation dictionary is consulted, so ``"rough"`` and ``"though"`` share a
pattern while ``"blue"`` and ``"through"`` do not.
"""

from __future__ import annotations

import re
from typing import List, Sequence


__all__ = [
    "MIN_WORD_LENGTH",
    "tokenize_words",
    "word_pattern",
    "extract_rhyme_patterns",
    "rhyme_match",
    "calculate_rhyme_score",
    "find_rhyming_words",
]


MIN_WORD_LENGTH = 3

# Letters, digits, whitespace and apostrophes survive; ``\w`` alone would also
# keep underscores.
_STRIP_PATTERN = re.compile(r"[^\w\s']|_")
_VOWEL_GROUP_PATTERN = re.compile(r"[aeiou]+")


def tokenize_words(text: str) -> List[str]:
    """Lowercase ``text`` and return its words of at least three characters."""

    cleaned = _STRIP_PATTERN.sub("", (text or "").lower())
    return [word for word in cleaned.split() if len(word) >= MIN_WORD_LENGTH]


def word_pattern(word: str) -> str:
    return word[-4:] if len(word) >= 4 else word[-3:]


def extract_rhyme_patterns(text: str) -> List[str]:
    """Return the distinct rhyme patterns of ``text`` in first-seen order."""

    patterns: List[str] = []
    seen: set[str] = set()
    for word in tokenize_words(text):
        ending = word_pattern(word)
        if ending not in seen:
            seen.add(ending)
            patterns.append(ending)
    return patterns


def _vowel_skeleton(pattern: str) -> str:
    return "".join(_VOWEL_GROUP_PATTERN.findall(pattern))


def rhyme_match(pattern_a: str, pattern_b: str) -> bool:
    """Return whether two rhyme patterns plausibly rhyme.

    The suffix rule is one-directional: only ``pattern_a``'s endings are
    looked for at the end of ``pattern_b``.  Callers pass the query-side
    pattern first.
    """

    a = pattern_a.lower()
    b = pattern_b.lower()

    if a == b:
        return True

    if b.endswith(a[-3:]) or b.endswith(a[-2:]):
        return True

    vowels_a = _vowel_skeleton(a)
    vowels_b = _vowel_skeleton(b)
    if len(vowels_a) >= 2 and len(vowels_b) >= 2:
        if vowels_a[-2:] == vowels_b[-2:]:
            return True

    return False


def calculate_rhyme_score(patterns_a: Sequence[str], patterns_b: Sequence[str]) -> float:
    """Score how well two pattern sets rhyme, between 0 and 1.

    Each pattern of ``patterns_a`` claims the first still-unclaimed pattern of
    ``patterns_b`` it matches.  The pairing is greedy, so reordering either
    sequence can change the score.
    """

    if not patterns_a or not patterns_b:
        return 0.0

    claimed = [False] * len(patterns_b)
    matches = 0
    for pattern in patterns_a:
        for index, candidate in enumerate(patterns_b):
            if not claimed[index] and rhyme_match(pattern, candidate):
                claimed[index] = True
                matches += 1
                break

    score = matches / min(len(patterns_a), len(patterns_b))
    return min(score, 1.0)


def find_rhyming_words(text: str, target_pattern: str) -> List[str]:
    """Return the words of ``text`` whose pattern rhymes with ``target_pattern``."""

    rhyming: List[str] = []
    seen: set[str] = set()
    for word in tokenize_words(text):
        if word in seen:
            continue
        if rhyme_match(word_pattern(word), target_pattern):
            seen.add(word)
            rhyming.append(word)
    return rhyming
