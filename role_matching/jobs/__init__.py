"""Dagster jobs for the role matching pipeline.

ASSET JOBS:
- role_matching: Rank employees for each role (partitioned by role id)

OPS JOBS:
- sync_role_partitions_job: Register role ids from the staffing store as dynamic partitions

USAGE:
1. Run sync_role_partitions_job to register role partitions
2. Go to Jobs → role_matching → Backfill
3. Select partitions and launch
"""

from dagster import OpExecutionContext, define_asset_job, job, op

from role_matching.assets.matches import role_matches, role_partitions

role_matching_job = define_asset_job(
    name="role_matching",
    description=(
        "Rank all employees for a role: embed bios and description, "
        "score skills, blend with dynamic weights. Use Backfill to select roles."
    ),
    selection=[role_matches],
    partitions_def=role_partitions,
)


@op(required_resource_keys={"matchmaking"})
def sync_role_partitions(context: OpExecutionContext) -> dict:
    """Register every role id in the store as a dynamic partition.

    Returns:
        Dict with total, existing and added partition counts
    """
    matchmaking = context.resources.matchmaking
    context.log.info("Fetching all role ids from the staffing store...")
    role_ids = matchmaking.get_all_role_ids()
    context.log.info(f"Found {len(role_ids)} roles")

    existing = set(context.instance.get_dynamic_partitions(partitions_def_name=role_partitions.name))
    new_ids = [rid for rid in role_ids if rid not in existing]
    if new_ids:
        context.instance.add_dynamic_partitions(
            partitions_def_name=role_partitions.name,
            partition_keys=new_ids,
        )
        context.log.info(f"Added {len(new_ids)} new role partitions")
    else:
        context.log.info("No new roles to add")

    return {"total": len(role_ids), "existing": len(existing), "added": len(new_ids)}


@job(description="Sync role ids as dynamic partitions")
def sync_role_partitions_job():
    """Register all role ids as dynamic partitions.

    Run before role_matching Backfill.
    """
    sync_role_partitions()
