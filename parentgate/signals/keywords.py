"""Keyword scoring shared by the lexical detectors.

Scoring rule:
    - single-word keyword present as a whole word: +0.3
    - multi-word phrase present in the text: +0.5
"""

import re
from typing import Iterable

WORD_HIT = 0.3
PHRASE_HIT = 0.5

_WORD_RE = re.compile(r"[a-z0-9']+")


def words(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def keyword_score(text: str, keywords: Iterable[str]) -> float:
    """Uncapped lexical score of `text` against `keywords`."""
    lowered = " ".join(words(text))
    tokens = set(lowered.split())
    score = 0.0
    for keyword in keywords:
        kw = " ".join(words(keyword))
        if not kw:
            continue
        if " " in kw:
            if f" {kw} " in f" {lowered} ":
                score += PHRASE_HIT
        elif kw in tokens:
            score += WORD_HIT
    return score
