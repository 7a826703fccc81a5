"""Dagster assets for the role matching pipeline."""

from role_matching.assets.matches import role_matches, role_partitions

__all__ = [
    "role_matches",
    "role_partitions",
]
