"""Deterministic local embeddings used when the embeddings API is not available.

The vector layout is:

    [development, frontend, backend, seniority, other, h0 .. h7, 0, 0, ...]

Bucket counters are normalized by token count. The h* components come from the
text's fingerprint so that two texts missing every keyword bucket still get
distinct vectors. Same input always gives the same output.

These vectors are dimensionally compatible with provider vectors but carry much
less meaning; cosine scores between a fallback vector and a provider vector are
computable, not comparable.
"""

import re

from role_matching.matching.text import fingerprint
from role_matching.matching.types import DEFAULT_DIMENSIONS

KEYWORD_BUCKETS: dict[str, tuple[str, ...]] = {
    "development": ("desarrollador", "developer", "programmer", "coder", "development"),
    "frontend": ("frontend", "html", "css", "javascript"),
    "backend": ("backend", "server", "api", "database"),
    "seniority": ("junior", "senior", "lead"),
}

HASH_COMPONENTS = 8
HASH_GROUP_WIDTH = 4
HASH_COMPONENT_SCALE = 0.1

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def _tokenize(text: str) -> list[str]:
    return _PUNCTUATION_RE.sub("", text.lower()).split()


def _hash_components(normalized: str) -> list[float]:
    digest = fingerprint(normalized)
    max_group = float(16**HASH_GROUP_WIDTH - 1)
    components = []
    for i in range(HASH_COMPONENTS):
        group = digest[i * HASH_GROUP_WIDTH : (i + 1) * HASH_GROUP_WIDTH]
        components.append(int(group, 16) / max_group * HASH_COMPONENT_SCALE)
    return components


def fallback_embedding(normalized: str, dimensions: int = DEFAULT_DIMENSIONS) -> list[float]:
    """Build a keyword-bucketed, hash-perturbed vector for already-normalized text."""
    if not normalized or not normalized.strip():
        return [0.0] * dimensions

    tokens = _tokenize(normalized)
    counters = [0.0] * len(KEYWORD_BUCKETS)
    other = 0
    for token in tokens:
        found = False
        for index, keywords in enumerate(KEYWORD_BUCKETS.values()):
            if any(kw in token for kw in keywords):
                counters[index] += 1
                found = True
        if not found:
            other += 1

    total = len(tokens) or 1
    vector = [c / total for c in counters]
    vector.append(other / total)
    vector.extend(_hash_components(normalized))

    if len(vector) >= dimensions:
        return vector[:dimensions]
    vector.extend([0.0] * (dimensions - len(vector)))
    return vector
