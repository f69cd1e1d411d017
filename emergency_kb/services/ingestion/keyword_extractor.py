"""Term-frequency keyword extraction for knowledge entries.

Keywords are informational only: they are shown alongside entries and kept
in the store, but never feed into search scoring.  Extraction is cheap and
deterministic so it can run on every chunk during ingestion.
"""

from __future__ import annotations

import re
from collections import Counter

_TOKEN_SPLIT = re.compile(r"\W+")

MIN_KEYWORD_LENGTH = 4
MAX_KEYWORDS = 10


def extract_keywords(text: str, max_keywords: int = MAX_KEYWORDS) -> str:
    """Return the most frequent words of *text* as a space-separated string.

    Tokens are lower-cased word runs longer than three characters.  Ties keep
    first-occurrence order.

    >>> extract_keywords("Apply pressure. Pressure stops bleeding; keep pressure on.")
    'pressure apply stops bleeding keep'
    """
    tokens = [
        token
        for token in _TOKEN_SPLIT.split(text.lower())
        if len(token) >= MIN_KEYWORD_LENGTH
    ]
    return " ".join(word for word, _ in Counter(tokens).most_common(max_keywords))
