"""
Resolve the per-muscle deltas a selected modifier contributes to a motion.

A modifier row's delta_rules map motion ids to an entry. A missing entry or
"inherit" defers to the motion's parent, {} is home base (no adjustment).
"""

from typing import Mapping, Sequence

from combo_engine.models.modifier import INHERIT, ModifierRow
from combo_engine.models.motion import Motion
from combo_engine.models.scoring import ModifierSelection, ResolvedDelta
from combo_engine.utils.log import logger

MAX_INHERIT_DEPTH = 20

ModifierTables = Mapping[str, Mapping[str, ModifierRow]]


def resolve_single_delta(
    motion_id: str,
    modifier_row: ModifierRow,
    motions_by_id: Mapping[str, Motion],
    table_key: str,
) -> ResolvedDelta | None:
    """
    Walk up the motion's parent chain until the row has an explicit entry.
    Returns None when the chain ends, loops or runs deeper than MAX_INHERIT_DEPTH.
    """
    visited: set[str] = set()
    chain: list[str] = []
    current = motion_id

    for _ in range(MAX_INHERIT_DEPTH):
        if current in visited:
            logger.warning(
                f"Circular motion parents resolving {table_key}/{modifier_row.id} "
                f"for {motion_id}: {' -> '.join(chain + [current])}"
            )
            return None
        visited.add(current)

        entry = modifier_row.delta_rules.get(current)
        if entry is None or entry == INHERIT:
            motion = motions_by_id.get(current)
            if motion is None or not motion.parent_id:
                return None
            chain.append(current)
            current = motion.parent_id
            continue

        return ResolvedDelta(
            modifier_table=table_key,
            modifier_id=modifier_row.id,
            motion_id=motion_id,
            deltas=dict(entry),
            inherited=bool(chain),
            inherit_chain=chain or None,
        )

    logger.warning(
        f"Inherit depth exceeded resolving {table_key}/{modifier_row.id} for {motion_id}"
    )
    return None


def resolve_all_deltas(
    motion_id: str,
    selections: Sequence[ModifierSelection],
    motions_by_id: Mapping[str, Motion],
    modifier_tables: ModifierTables,
) -> list[ResolvedDelta]:
    """
    Resolve every selected modifier for the motion, in selection order.
    Unknown tables or rows are skipped, as are home-base (empty) results.
    """
    resolved: list[ResolvedDelta] = []
    for selection in selections:
        row = modifier_tables.get(selection.tableKey, {}).get(selection.rowId)
        if row is None:
            continue

        delta = resolve_single_delta(motion_id, row, motions_by_id, selection.tableKey)
        if delta is not None and delta.deltas:
            resolved.append(delta)
    return resolved
