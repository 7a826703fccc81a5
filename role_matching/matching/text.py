"""Text canonicalization and fingerprinting for embedding inputs."""

import hashlib
import re

DEFAULT_MAX_TEXT_LENGTH = 1000

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str | None, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> str:
    """Lower-case, collapse whitespace, trim and truncate.

    Empty, whitespace-only or None input yields "".
    """
    if not text or not text.strip():
        return ""
    processed = _WHITESPACE_RE.sub(" ", text.lower()).strip()
    return processed[:max_length]


def fingerprint(normalized: str) -> str:
    """SHA-256 hex digest of normalized text; the cache key for its embedding."""
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
