"""Token counting for size estimates shown alongside files."""

from __future__ import annotations

import functools
import logging

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"
SUPPORTED_ENCODINGS = frozenset({"cl100k_base", "o200k_base"})


@functools.cache
def _encoding(name: str) -> tiktoken.Encoding | None:
    """Return a cached tiktoken encoding, or None if it cannot be loaded."""
    try:
        return tiktoken.get_encoding(name)
    except (ValueError, OSError) as exc:
        # tiktoken downloads BPE files on first use; offline runs land here.
        logger.debug("tiktoken encoding %s unavailable: %s", name, exc)
        return None


def approx_tokens(text: str) -> int:
    """Roughly one token per four characters, rounded up."""
    return (len(text) + 3) // 4


def count_tokens(text: str, encoding: str = DEFAULT_ENCODING) -> int:
    """Count tokens in text.

    Unknown encodings, and encodings tiktoken cannot load, fall back to
    ``approx_tokens``.
    """
    if not text:
        return 0
    enc = _encoding(encoding) if encoding in SUPPORTED_ENCODINGS else None
    if enc is None:
        return approx_tokens(text)
    return len(enc.encode_ordinary(text))
