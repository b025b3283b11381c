"""
String Similarity Layer for Trademark Conflict Detection
Levenshtein distance + Soundex-style phonetic codes, used to compare a candidate
name against registered marks.
"""

from rapidfuzz.distance import Levenshtein
import re

SOUNDEX_CODES = {
    "B": "1", "F": "1", "P": "1", "V": "1",
    "C": "2", "G": "2", "J": "2", "K": "2", "Q": "2", "S": "2", "X": "2", "Z": "2",
    "D": "3", "T": "3",
    "L": "4",
    "M": "5", "N": "5",
    "R": "6",
}

SOUNDEX_MATCH_WEIGHT = 0.3
EDIT_SIMILARITY_WEIGHT = 0.7


def edit_distance(a: str, b: str) -> int:
    """Unit-cost edit distance (insert, delete, substitute)."""
    return Levenshtein.distance(a, b)


def normalized_similarity(a: str, b: str) -> float:
    """
    Case-insensitive similarity in [0, 1].

    1 - distance / longer length; two empty strings are identical.
    """
    lower_a = a.lower()
    lower_b = b.lower()
    max_len = max(len(lower_a), len(lower_b))
    if max_len == 0:
        return 1.0
    return 1.0 - edit_distance(lower_a, lower_b) / max_len


def soundex(value: str) -> str:
    """
    Four character Soundex code.

    Non-letters are stripped. Letters without a code (vowels, H, W, Y) are
    transparent: they neither emit a digit nor break a run of identical codes.
    """
    s = re.sub(r'[^A-Z]', '', value.upper())
    if not s:
        return "0000"

    result = s[0]
    last_code = SOUNDEX_CODES.get(s[0], "")

    for char in s[1:]:
        if len(result) >= 4:
            break
        code = SOUNDEX_CODES.get(char, "")
        if code and code != last_code:
            result += code
        last_code = code or last_code

    return result.ljust(4, "0")


def phonetic_similarity(a: str, b: str) -> float:
    """0.3 for a Soundex match plus 0.7 x the edit similarity."""
    soundex_match = SOUNDEX_MATCH_WEIGHT if soundex(a) == soundex(b) else 0.0
    return soundex_match + normalized_similarity(a, b) * EDIT_SIMILARITY_WEIGHT


def combined_similarity(a: str, b: str) -> float:
    # Either a phonetic or a visual near-miss counts
    return max(phonetic_similarity(a, b), normalized_similarity(a, b))
