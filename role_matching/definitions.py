"""Dagster definitions for the Role Matching system.

This module is the entry point for Dagster. It wires together:
- The role_matches asset (one partition per role)
- Resources (embeddings API client, matching engine, staffing store reader)
- Jobs (role matching, role partition sync)
"""

import os

from dagster import Definitions, load_assets_from_modules
from dotenv import load_dotenv

from role_matching.assets import matches
from role_matching.jobs import role_matching_job, sync_role_partitions_job
from role_matching.resources import (
    EmbeddingAPIResource,
    MatchingEngineResource,
    MatchmakingResource,
)

# Load environment variables from .env file (must be before resource initialization)
load_dotenv()

all_assets = load_assets_from_modules([matches])


def get_environment() -> str:
    """Get current environment from env var."""
    return os.getenv("ENVIRONMENT", "development")


def get_resources() -> dict:
    """Build resources for the current environment.

    An empty OPENAI_API_KEY is valid everywhere: the engine then uses local
    fallback embeddings. Production uses process workers; other environments
    default to threads unless MATCHING_WORKER_KIND says otherwise.
    """
    env = get_environment()
    default_workers = "process" if env == "production" else "thread"
    embeddings = EmbeddingAPIResource(
        api_key=os.getenv("OPENAI_API_KEY", ""),
        model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
    )
    return {
        "embeddings": embeddings,
        "matching_engine": MatchingEngineResource(
            embeddings=embeddings,
            worker_kind=os.getenv("MATCHING_WORKER_KIND", default_workers),
        ),
        # Shares the process-wide engine from role_matching.db
        "matchmaking": MatchmakingResource(),
    }


all_jobs = [
    # Asset jobs (partitioned) - use Backfill in UI to select roles
    role_matching_job,
    # Ops jobs
    sync_role_partitions_job,
]

defs = Definitions(
    assets=all_assets,
    resources=get_resources(),
    jobs=all_jobs,
)


def main():
    """Entry point for CLI usage."""
    print("Role Matching Dagster project loaded successfully!")
    print(f"Environment: {get_environment()}")
    print(f"Assets: {len(all_assets)}")
    print(f"Jobs: {len(all_jobs)}")
    print("\nAvailable jobs:")
    for job in all_jobs:
        print(f"  - {job.name}")
    print("\nRun 'role-matching-dev' to start the development server.")


if __name__ == "__main__":
    main()
