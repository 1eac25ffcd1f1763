"""
Text quality heuristics applied before anything is sent to the scorer.
"""
import re
from typing import Optional

LATIN_LETTER_RE = re.compile(r"[A-Za-z]")
NON_ASCII_RE = re.compile(r"[^\x00-\x7F]")

MIN_LETTER_RATIO = 0.3
MAX_NON_ASCII_RATIO = 0.2
DEFAULT_MAX_CHARS = 500


def is_likely_english(text: Optional[str]) -> bool:
    if not text:
        return False
    total = len(text)
    letters = len(LATIN_LETTER_RE.findall(text))
    non_ascii = len(NON_ASCII_RE.findall(text))
    return letters / total >= MIN_LETTER_RATIO and non_ascii / total <= MAX_NON_ASCII_RATIO


def trim_text(text: Optional[str], max_chars: int = DEFAULT_MAX_CHARS) -> str:
    if not text:
        return ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars]
