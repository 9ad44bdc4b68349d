"""
Muscle target tree helpers.

Motions store muscle_targets as a flat {muscle_id: score} map. Older rows
hold a nested tree where each node may carry a "_score" and named children:

    {"ARMS": {"_score": 0.5, "BICEPS": {"_score": 0.9}}}

Only leaves (a numeric _score and no nested object children) survive
flattening, container scores are derived and get dropped.
"""

import json
from typing import Any, Iterable, Mapping

from combo_engine.models.motion import Muscle

SCORE_KEY = "_score"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_leaf_node(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    if not _is_number(value.get(SCORE_KEY)):
        return False
    return not any(
        isinstance(child, Mapping) for key, child in value.items() if key != SCORE_KEY
    )


def is_already_flat(value: Any) -> bool:
    if not isinstance(value, Mapping) or not value:
        return False
    return all(_is_number(v) for v in value.values())


def flatten_muscle_targets(targets: Any) -> dict[str, float]:
    """
    Flatten a (possibly nested) muscle target tree to {muscle_id: score}.
    Non-mapping input gives {}. Flat input comes back unchanged.
    """
    out: dict[str, float] = {}
    if not isinstance(targets, Mapping):
        return out
    if is_already_flat(targets):
        return dict(targets)

    for key, value in targets.items():
        if key == SCORE_KEY:
            continue
        if _is_number(value):
            out[key] = value
        elif isinstance(value, Mapping):
            if is_leaf_node(value):
                out[key] = value[SCORE_KEY]
            else:
                out.update(flatten_muscle_targets(value))
    return out


def strip_parent_zeros(flat: Mapping[str, float], parent_ids: set[str]) -> dict[str, float]:
    """Drop parent muscles scored 0, their totals are derived from children."""
    return {
        muscle_id: score
        for muscle_id, score in flat.items()
        if not (muscle_id in parent_ids and score == 0)
    }


# ───────────── Building trees from flat scores ─────────────


def parse_parent_ids(muscle: Muscle) -> list[str]:
    raw = muscle.parent_ids
    if isinstance(raw, list):
        return raw
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return []
        return [p for p in parsed if isinstance(p, str)] if isinstance(parsed, list) else []
    return []


def find_root_muscle_id(muscle_id: str, muscles_by_id: Mapping[str, Muscle]) -> str:
    """Walk first parents up to the root. A cycle returns the starting muscle."""
    visited: set[str] = set()
    current: str | None = muscle_id
    while current and current not in visited:
        visited.add(current)
        muscle = muscles_by_id.get(current)
        parents = parse_parent_ids(muscle) if muscle else []
        if not parents:
            return current
        current = parents[0]
    return muscle_id


def get_path_from_root(muscle_id: str, muscles_by_id: Mapping[str, Muscle]) -> list[str]:
    """Root-first path to muscle_id, empty on a cycle."""
    root_id = find_root_muscle_id(muscle_id, muscles_by_id)
    visited: set[str] = set()
    path: list[str] = []
    current: str | None = muscle_id
    while current and current not in visited:
        visited.add(current)
        path.insert(0, current)
        if current == root_id:
            return path
        muscle = muscles_by_id.get(current)
        parents = parse_parent_ids(muscle) if muscle else []
        if not parents:
            break
        current = parents[0]
    return path if path and path[0] == root_id else []


def build_muscle_tree(flat: Mapping[str, float], muscles: Iterable[Muscle]) -> dict[str, Any]:
    """
    Place each flat score at its ancestor path. Muscles not in the registry
    are skipped, intermediate nodes take their own flat score or 0.
    """
    muscles_by_id = {m.id: m for m in muscles}
    tree: dict[str, Any] = {SCORE_KEY: 0}

    for muscle_id, score in flat.items():
        if muscle_id not in muscles_by_id:
            continue
        path = get_path_from_root(muscle_id, muscles_by_id)
        if not path:
            continue
        node = tree
        for node_id in path:
            child = node.get(node_id)
            if not isinstance(child, dict):
                child = {SCORE_KEY: flat.get(node_id, 0)}
                node[node_id] = child
            node = child
        node[SCORE_KEY] = score

    return tree


def recompute_tree_scores(tree: dict[str, Any]) -> None:
    """Set every container's _score to the rounded sum of its children. Mutates tree."""

    def walk(node: dict[str, Any]) -> float:
        children = [v for k, v in node.items() if k != SCORE_KEY and isinstance(v, dict)]
        if not children:
            return node.get(SCORE_KEY, 0)
        node[SCORE_KEY] = round(sum(walk(child) for child in children), 2)
        return node[SCORE_KEY]

    for key, child in tree.items():
        if key != SCORE_KEY and isinstance(child, dict):
            walk(child)
