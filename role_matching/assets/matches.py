"""Role matching assets.

One partition per role id. Each materialization reads a fresh snapshot of the
role, every employee and the skill catalog, and ranks the employees for that role.
"""

import asyncio
from typing import Any

from dagster import AssetExecutionContext, DynamicPartitionsDefinition, asset

# Dynamic partition definition for roles
# Each role gets its own partition key (role id from the staffing store)
role_partitions = DynamicPartitionsDefinition(name="roles")


@asset(
    partitions_def=role_partitions,
    description="Employees ranked for one role by blended technical and contextual score",
    group_name="matching",
    code_version="1.0.0",
    required_resource_keys={"matching_engine", "matchmaking"},
    metadata={"source": "staffing_db"},
)
def role_matches(context: AssetExecutionContext) -> list[dict[str, Any]]:
    """Rank every employee for the role in this partition."""
    role_id = context.partition_key
    matchmaking = context.resources.matchmaking
    engine = context.resources.matching_engine

    role = matchmaking.get_role_snapshot(role_id)
    if role is None:
        context.log.warning(f"Role {role_id} no longer exists; skipping")
        return []
    candidates = matchmaking.get_candidate_snapshots()
    if not candidates:
        context.log.info(f"No employees to rank for role {role_id}")
        return []
    skill_catalog = matchmaking.get_skill_catalog()

    context.log.info(
        f"Ranking {len(candidates)} employees for role {role_id} ({role.name or 'unnamed'}), "
        f"{len(role.skills)} required skills"
    )
    result = asyncio.run(engine.get_orchestrator().match_role(role, candidates, skill_catalog))

    weights = result.weights.as_percentages()
    top = result.matches[0] if result.matches else None
    context.add_output_metadata(
        {
            "total_candidates": result.total_candidates,
            "weight_technical": weights["technical"],
            "weight_contextual": weights["contextual"],
            "embedding_provenance": result.embedding_provenance,
            "top_candidate_id": str(top.candidate_id) if top else "",
            "top_final_score": top.final_score if top else 0,
            **engine.embeddings.get_usage().to_metadata(),
        }
    )
    return [m.to_dict() for m in result.matches]
