"""Text tokenization shared by training, indexing and the web front end."""

from __future__ import annotations

import re

_WORD_RE = re.compile(r"\w+", re.ASCII)


def tokenize(text: str) -> list[str]:
    """Return the lower-cased ASCII word tokens found in ``text``."""
    return _WORD_RE.findall(text.lower())