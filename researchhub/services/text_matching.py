"""
Text Matching Primitives

PURPOSE:
Cheap, deterministic similarity measures used by the match scorer.

HOW IT WORKS:
1. normalize_string / tokenize - canonical forms of free text
2. fuzzy_match - are two terms the "same" concept?
3. jaccard_similarity - set overlap using fuzzy_match as equality
4. text_similarity - share of a reference text's keywords found elsewhere

NOTES:
- Greedy, order-dependent matching is kept on purpose: scores must be
  reproducible for the same inputs.
- fuzzy_match is permissive. Short terms match by substring, so "ai"
  matches "hair". Callers accept that trade-off.
"""

from typing import List, Sequence


STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or",
    "but", "in", "on", "at", "to",
    "for", "of", "with", "by", "from",
    "is", "are", "was", "were", "be",
    "been", "being", "have", "has", "had",
    "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must",
    "can", "this", "that", "these", "those",
})

# Punctuation replaced with spaces before splitting
_PUNCTUATION_TABLE = str.maketrans({ch: " " for ch in ",.;:!?()[]"})

# Word overlap ratio needed for multi-word terms to match
WORD_OVERLAP_THRESHOLD = 0.6


# ============================================================
# NORMALIZATION
# ============================================================

def normalize_string(s: str) -> str:
    """Lowercase, turn '-' and '_' into spaces, collapse whitespace."""
    s = s.lower().replace("-", " ").replace("_", " ")
    return " ".join(s.split())


def tokenize(text: str) -> List[str]:
    """
    Split text into lowercase keywords.

    Drops punctuation, stop words and words of two letters or fewer.
    Duplicates are kept.
    """
    words = text.lower().translate(_PUNCTUATION_TABLE).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


# ============================================================
# FUZZY TERM MATCHING
# ============================================================

def _words_related(w1: str, w2: str) -> bool:
    return w1 == w2 or w1 in w2 or w2 in w1


def fuzzy_match(str1: str, str2: str) -> bool:
    """
    Check whether two terms denote the same concept.

    Handles variations like "machine learning" vs "Machine-Learning"
    and "deep learning models" vs "deep learning".
    """
    s1 = normalize_string(str1)
    s2 = normalize_string(str2)

    if s1 == s2:
        return True

    if s1 in s2 or s2 in s1:
        return True

    words1 = s1.split()
    words2 = s2.split()

    if len(words1) > 1 or len(words2) > 1:
        shorter, longer = (words1, words2) if len(words1) <= len(words2) else (words2, words1)

        match_count = 0
        for w1 in shorter:
            if len(w1) <= 2:
                continue
            for w2 in longer:
                if len(w2) <= 2:
                    continue
                if _words_related(w1, w2):
                    match_count += 1
                    break

        min_words = min(len(words1), len(words2))
        if match_count > 0 and match_count / min_words >= WORD_OVERLAP_THRESHOLD:
            return True

    return False


# ============================================================
# SET AND TEXT SIMILARITY
# ============================================================

def jaccard_similarity(set1: Sequence[str], set2: Sequence[str]) -> float:
    """
    Jaccard similarity with fuzzy element equality.

    Each element of set2 can be matched at most once. Matching is
    greedy in the order of set1, so this is an approximation of the
    best possible intersection, not the maximum.

    Returns:
        Float between 0 and 1
    """
    if not set1 or not set2:
        return 0.0

    normalized1 = [normalize_string(s) for s in set1]
    normalized2 = [normalize_string(s) for s in set2]

    intersection = 0
    matched = set()

    for s1 in normalized1:
        for j, s2 in enumerate(normalized2):
            if j in matched:
                continue
            if fuzzy_match(s1, s2):
                intersection += 1
                matched.add(j)
                break

    union = len(set1) + len(set2) - intersection
    if union == 0:
        return 0.0

    return intersection / union


def text_similarity(reference: str, *texts: str) -> float:
    """
    Fraction of the reference text's keywords found in the other texts.

    Only keywords of four or more letters can count as a match, but
    every keyword of the reference counts toward the denominator.
    Direction matters: text_similarity(a, b) != text_similarity(b, a).

    Returns:
        Float between 0 and 1
    """
    if not reference:
        return 0.0

    reference_words = tokenize(reference)
    if not reference_words:
        return 0.0

    comparison_words = set(tokenize(" ".join(texts)))
    if not comparison_words:
        return 0.0

    matches = sum(
        1 for word in reference_words
        if len(word) >= 4 and word in comparison_words
    )

    return matches / len(reference_words)
