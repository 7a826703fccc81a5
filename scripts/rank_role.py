#!/usr/bin/env python3
"""Rank employees for one role straight from the staffing database; print the breakdown.

Uses the same engine as the role_matches asset, without a Dagster run. Handy for
checking why an employee ranks where they do.

Usage:
    python scripts/rank_role.py <role_id>
    python scripts/rank_role.py 12 --top 5 --workers thread

Requires:
    - POSTGRES_* variables pointing at the staffing database
    - OPENAI_API_KEY for provider embeddings (local fallback embeddings otherwise)
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from role_matching.resources import (
    EmbeddingAPIResource,
    MatchingEngineResource,
    MatchmakingResource,
)

load_dotenv()
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Rank employees for one role")
    parser.add_argument("role_id", help="Role id in the staffing database")
    parser.add_argument("--top", type=int, default=20, help="Show only the best N matches")
    parser.add_argument(
        "--workers", choices=["process", "thread"], default="process", help="Similarity pool"
    )
    args = parser.parse_args()

    matchmaking = MatchmakingResource()
    role = matchmaking.get_role_snapshot(args.role_id)
    if role is None:
        logger.error(f"Role {args.role_id} not found")
        return 1
    candidates = matchmaking.get_candidate_snapshots()
    if not candidates:
        logger.error("No employees in the database")
        return 1

    engine = MatchingEngineResource(embeddings=EmbeddingAPIResource(), worker_kind=args.workers)
    try:
        result = asyncio.run(
            engine.get_orchestrator().match_role(role, candidates, matchmaking.get_skill_catalog())
        )
    finally:
        engine.shutdown()

    weights = result.weights.as_percentages()
    print(f"\nRole {role.id}: {role.name}")
    print(f"Weights: technical {weights['technical']}% / contextual {weights['contextual']}%")
    print(f"Embeddings: {result.embedding_provenance}")
    print(f"\n{'#':>3}  {'final':>5}  {'tech':>4}  {'ctx':>4}  employee")
    for rank, match in enumerate(result.matches[: args.top], start=1):
        print(
            f"{rank:>3}  {match.final_score:>5}  {match.technical_score:>4}  "
            f"{match.contextual_score:>4}  {match.name} ({match.candidate_id})"
        )
    print(f"\n{result.total_candidates} employees ranked")
    return 0


if __name__ == "__main__":
    sys.exit(main())
