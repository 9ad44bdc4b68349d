from typing import Any, Mapping, Sequence

from combo_engine.models.combo_rule import ReplaceDeltaPayload
from combo_engine.models.scoring import ActivationResult, ResolvedDelta, ScorePolicy
from combo_engine.rules.errors import UnknownMuscleError
from combo_engine.settings import settings
from combo_engine.utils.muscle_tree import flatten_muscle_targets


def default_policy() -> ScorePolicy:
    return ScorePolicy(
        clampMin=settings.SCORE_CLAMP_MIN,
        clampMax=settings.SCORE_CLAMP_MAX,
        normalizeOutput=settings.SCORE_NORMALIZE_OUTPUT,
        missingKeyBehavior=settings.SCORE_MISSING_KEY_BEHAVIOR,
    )


def sum_deltas(resolved: Sequence[ResolvedDelta]) -> dict[str, float]:
    summed: dict[str, float] = {}
    for rd in resolved:
        for muscle_id, delta in rd.deltas.items():
            summed[muscle_id] = summed.get(muscle_id, 0.0) + delta
    return summed


def apply_delta_overrides(
    resolved: Sequence[ResolvedDelta], overrides: Sequence[ReplaceDeltaPayload]
) -> list[ResolvedDelta]:
    """Swap in REPLACE_DELTA deltas for matching (table_key, row_id) contributions."""
    by_key = {(ov.table_key, ov.row_id): ov for ov in overrides}
    out: list[ResolvedDelta] = []
    for rd in resolved:
        override = by_key.get((rd.modifier_table, rd.modifier_id))
        if override is not None:
            rd = rd.model_copy(update={"deltas": dict(override.deltas)})
        out.append(rd)
    return out


def _add_deltas(
    base: Mapping[str, float], delta_sum: Mapping[str, float], policy: ScorePolicy
) -> dict[str, float]:
    scores = dict(base)
    for muscle_id, delta in delta_sum.items():
        if muscle_id in scores:
            scores[muscle_id] += delta
        elif policy.missingKeyBehavior == "zero":
            scores[muscle_id] = delta
        elif policy.missingKeyBehavior == "error":
            raise UnknownMuscleError(
                f'Delta references unknown muscle "{muscle_id}" not in base scores'
            )
    return scores


def apply_deltas(
    base: Mapping[str, float], delta_sum: Mapping[str, float], policy: ScorePolicy
) -> dict[str, float]:
    """Add deltas, clamp into the policy range and optionally normalise."""
    final = _add_deltas(base, delta_sum, policy)

    for muscle_id, score in final.items():
        final[muscle_id] = max(policy.clampMin, min(policy.clampMax, score))

    if policy.normalizeOutput and policy.clampMax > 0:
        for muscle_id, score in final.items():
            final[muscle_id] = score / policy.clampMax

    return final


def compute_activation(
    muscle_targets: Any,
    resolved_deltas: Sequence[ResolvedDelta],
    policy: ScorePolicy | Mapping[str, Any] | None = None,
    delta_overrides: Sequence[ReplaceDeltaPayload] | None = None,
    clamp_map: Mapping[str, float] | None = None,
) -> ActivationResult:
    """
    Full activation pipeline:
    1. REPLACE_DELTA overrides replace matching modifier contributions
    2. base scores come from the flattened muscle targets
    3. summed deltas are applied, then clamped/normalised per policy
    4. CLAMP_MUSCLE caps are applied last
    """
    if policy is None:
        merged = default_policy()
    elif isinstance(policy, ScorePolicy):
        merged = policy
    else:
        merged = ScorePolicy.model_validate({**default_policy().model_dump(), **policy})

    effective = list(resolved_deltas)
    if delta_overrides:
        effective = apply_delta_overrides(effective, delta_overrides)

    base = flatten_muscle_targets(muscle_targets)
    delta_sum = sum_deltas(effective)
    raw = _add_deltas(base, delta_sum, merged)
    final = apply_deltas(base, delta_sum, merged)

    for muscle_id, cap in (clamp_map or {}).items():
        if muscle_id in final and final[muscle_id] > cap:
            final[muscle_id] = cap

    return ActivationResult(
        base_scores=base,
        applied_deltas=effective,
        raw_scores=raw,
        final_scores=final,
    )
