"""
String similarity scoring between free-text input and taxonomy candidates.

The score is directional: "input contained in target" (0.9) ranks above
"target contained in input" (0.85), so similarity(a, b) and similarity(b, a)
can differ.
"""
import re
from typing import Any

from rapidfuzz.distance import Levenshtein

from product_matching.matching.normalizer import normalize_text

EXACT_SCORE = 1.0
INPUT_IN_TARGET_SCORE = 0.9
TARGET_IN_INPUT_SCORE = 0.85

# Code-like (numeric) strings
CODE_SIMILARITY_CUTOFF = 0.75
CODE_NEAR_BASE = 0.8
CODE_NEAR_WEIGHT = 0.2
CODE_FAR_WEIGHT = 0.7

# Word overlap
WORD_EXACT_SCORE = 1.0
WORD_CONTAINS_SCORE = 0.7
WORD_FUZZY_CUTOFF = 0.75

WORD_WEIGHT = 0.6
CHAR_WEIGHT = 0.4

_CODE_LIKE = re.compile(r"^[0-9]")


def edit_similarity(first: str, second: str) -> float:
    """1 - levenshtein(first, second) / max(len(first), len(second))"""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(first, second) / longest


def _word_score(input_words: list[str], target_words: list[str]) -> float:
    total = 0.0
    for input_word in input_words:
        if input_word in target_words:
            total += WORD_EXACT_SCORE
            continue

        if any(
            input_word in target_word or target_word in input_word
            for target_word in target_words
        ):
            total += WORD_CONTAINS_SCORE
            continue

        best = max(
            (edit_similarity(input_word, target_word) for target_word in target_words),
            default=0.0,
        )
        if best >= WORD_FUZZY_CUTOFF:
            total += best

    return total / max(len(input_words), len(target_words))


def similarity(input_text: Any, target_text: Any) -> float:
    """
    Score how well input_text matches target_text, in [0, 1].

    Rules are checked in order and the first applicable one decides:
    exact match, containment, numeric near-miss, then a blend of word
    overlap (60%) and whole-string edit similarity (40%).
    """
    source = normalize_text(input_text)
    target = normalize_text(target_text)

    if source == target:
        return EXACT_SCORE

    if source in target:
        return INPUT_IN_TARGET_SCORE
    if target in source:
        return TARGET_IN_INPUT_SCORE

    if _CODE_LIKE.match(source) and _CODE_LIKE.match(target):
        code_similarity = edit_similarity(source, target)
        if code_similarity >= CODE_SIMILARITY_CUTOFF:
            return CODE_NEAR_BASE + code_similarity * CODE_NEAR_WEIGHT
        return code_similarity * CODE_FAR_WEIGHT

    word_score = _word_score(source.split(), target.split())
    char_score = edit_similarity(source, target)

    return min(1.0, word_score * WORD_WEIGHT + char_score * CHAR_WEIGHT)
