"""Wildcard matching for command rules.

``*`` matches any run of characters, spaces included. A pattern ending in
``" *"`` also matches when nothing follows, so ``"push *"`` covers both
``push`` and ``push origin main``. Everything else is literal.
"""

from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    optional_tail = pattern.endswith(" *")
    if optional_tail:
        pattern = pattern[:-2]
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    if optional_tail:
        regex += "(?: .*)?"
    return re.compile(regex, re.DOTALL)


def match(pattern: str, text: str) -> bool:
    """True if ``pattern`` matches the whole of ``text``."""
    return compile_pattern(pattern).fullmatch(text) is not None

