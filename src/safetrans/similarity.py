"""
String similarity primitives used by the quality scorer.

All scores are on a 0-100 scale. Comparisons run over Python ``str`` code
points, so Hangul, CJK and Thai text compare per character, not per byte.
"""
import re
from typing import Set

# Keyword -> interchangeable forms that count as "meaning kept".
SYNONYM_GROUPS = {
    "긴급": ["긴급", "응급", "급한", "시급"],
    "즉시": ["즉시", "바로", "곧바로", "신속"],
    "대피": ["대피", "피난", "벗어나", "떠나"],
    "주의": ["주의", "조심", "경계", "유의"],
    "경보": ["경보", "경고", "알림", "통보"],
    "위험": ["위험", "위험한", "유해", "해로운"],
}

_PUNCTUATION = re.compile(r"[^\w\s]|_")


def levenshtein_distance(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def edit_similarity(a: str, b: str) -> float:
    """Edit-distance similarity; two empty strings are identical (100)."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100.0
    distance = levenshtein_distance(a, b)
    return 100.0 * (max_len - distance) / max_len


def tokenize(text: str) -> Set[str]:
    return set(_PUNCTUATION.sub("", text).split())


def structural_similarity(a: str, b: str) -> float:
    """
    Share of distinct tokens the two texts have in common, relative to the
    larger token set. Two texts without any tokens compare as 100, the same
    convention ``edit_similarity`` uses for empty strings.
    """
    tokens_a, tokens_b = tokenize(a), tokenize(b)
    larger = max(len(tokens_a), len(tokens_b))
    if larger == 0:
        return 100.0
    return 100.0 * len(tokens_a & tokens_b) / larger


def semantic_preserved(keyword: str, text: str) -> bool:
    related = SYNONYM_GROUPS.get(keyword, [keyword])
    return any(word in text for word in related)
