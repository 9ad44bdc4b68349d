"""
Trigger evaluation and action application for validated combo rules.

Rules run as a sequential pipeline: each rule sees the state produced by the
rule before it, in the order the caller supplied. REPLACE_DELTA is not
idempotent, applying the same rule twice adds its deltas twice.
"""

from typing import Any, Callable, Iterable, Mapping, Sequence

from combo_engine.models.combo_rule import (
    ClampMuscleRule,
    ComboRule,
    ReplaceDeltaRule,
    SwitchMotionRule,
    TriggerCondition,
)
from combo_engine.models.evaluation import (
    DeltaApplication,
    MotionSwitch,
    PipelineResult,
    PipelineState,
    RuleEffect,
    RuleEvaluation,
    ScoreClamp,
)
from combo_engine.rules.errors import ComboRuleDefect, InvalidComboRuleError
from combo_engine.rules.validator import parse_combo_rule
from combo_engine.utils.log import logger

FactLookup = Callable[[str], Any]
Facts = FactLookup | Mapping[str, Any]

# table key whose fact tracks the pipeline's current motion
MOTION_FACT_KEY = "motions"


def facts_from_mapping(facts: Mapping[str, Any]) -> FactLookup:
    def lookup(table_key: str) -> Any:
        return facts.get(table_key)

    return lookup


def _as_lookup(facts: Facts) -> FactLookup:
    if isinstance(facts, Mapping):
        return facts_from_mapping(facts)
    return facts


def _fact_values(fact: Any) -> set[str] | None:
    """A fact is one value or a collection of selected row ids."""
    if fact is None:
        return None
    if isinstance(fact, str):
        return {fact}
    if isinstance(fact, (list, tuple, set, frozenset)):
        return {str(v) for v in fact}
    return {str(fact)}


def condition_matches(condition: TriggerCondition, facts: Facts) -> bool:
    selected = _fact_values(_as_lookup(facts)(condition.tableKey))
    if selected is None:
        return False

    if condition.operator in ("eq", "not_eq"):
        if not isinstance(condition.value, str):
            logger.warning(
                f"Condition on {condition.tableKey!r} uses {condition.operator} "
                f"with a list value, treating as no match"
            )
            return False
        hit = condition.value in selected
        return hit if condition.operator == "eq" else not hit

    hit = any(v in selected for v in condition.values)
    return hit if condition.operator == "in" else not hit


def rule_fires(rule: ComboRule, facts: Facts) -> bool:
    """All conditions must hold. Every condition is checked, in order."""
    lookup = _as_lookup(facts)
    results = [condition_matches(c, lookup) for c in rule.trigger_conditions_json]
    return all(results)


# ───────────── Actions ─────────────


def _switch_motion(
    rule: SwitchMotionRule, state: PipelineState
) -> tuple[PipelineState, MotionSwitch]:
    proxy = rule.action_payload_json.proxy_motion_id
    effect = MotionSwitch(
        rule_id=rule.id, from_motion_id=state.motion_id, proxy_motion_id=proxy
    )
    return state.model_copy(update={"motion_id": proxy}), effect


def _replace_delta(
    rule: ReplaceDeltaRule, state: PipelineState
) -> tuple[PipelineState, DeltaApplication]:
    payload = rule.action_payload_json
    before = state.get_row(payload.table_key, payload.row_id)
    after = dict(before)
    for field, delta in payload.deltas.items():
        after[field] = after.get(field, 0.0) + delta

    rows = {
        table_key: {row_id: dict(fields) for row_id, fields in table.items()}
        for table_key, table in state.rows.items()
    }
    rows.setdefault(payload.table_key, {})[payload.row_id] = after

    effect = DeltaApplication(
        rule_id=rule.id,
        table_key=payload.table_key,
        row_id=payload.row_id,
        deltas=dict(payload.deltas),
        before=before,
        after=after,
    )
    return state.model_copy(update={"rows": rows}), effect


def _clamp_muscle(
    rule: ClampMuscleRule, state: PipelineState
) -> tuple[PipelineState, ScoreClamp]:
    clamps = rule.action_payload_json.clamps
    scores = dict(state.scores)
    before: dict[str, float] = {}
    after: dict[str, float] = {}

    for muscle_id, cap in clamps.items():
        if muscle_id not in scores:
            continue
        before[muscle_id] = scores[muscle_id]
        scores[muscle_id] = min(scores[muscle_id], cap)
        after[muscle_id] = scores[muscle_id]

    effect = ScoreClamp(rule_id=rule.id, clamps=dict(clamps), before=before, after=after)
    return state.model_copy(update={"scores": scores}), effect


def apply_rule(rule: ComboRule, state: PipelineState) -> tuple[PipelineState, RuleEffect]:
    """Apply a rule's action unconditionally and return the new state and effect."""
    if isinstance(rule, SwitchMotionRule):
        return _switch_motion(rule, state)
    if isinstance(rule, ReplaceDeltaRule):
        return _replace_delta(rule, state)
    if isinstance(rule, ClampMuscleRule):
        return _clamp_muscle(rule, state)
    raise ComboRuleDefect(f"Unsupported combo rule type: {type(rule).__name__}")


def _pipeline_lookup(facts: FactLookup, state: PipelineState) -> FactLookup:
    def lookup(table_key: str) -> Any:
        if table_key == MOTION_FACT_KEY and state.motion_id is not None:
            return state.motion_id
        return facts(table_key)

    return lookup


def evaluate_rule(
    rule: ComboRule, facts: Facts, state: PipelineState
) -> tuple[PipelineState, RuleEvaluation]:
    lookup = _pipeline_lookup(_as_lookup(facts), state)
    if not rule_fires(rule, lookup):
        return state, RuleEvaluation(
            rule_id=rule.id, action_type=rule.action_type, fired=False
        )

    new_state, effect = apply_rule(rule, state)
    logger.debug(f"Combo rule {rule.id!r} fired: {rule.action_type}")
    return new_state, RuleEvaluation(
        rule_id=rule.id, action_type=rule.action_type, fired=True, effect=effect
    )


def run_pipeline(
    rules: Sequence[ComboRule],
    facts: Facts,
    state: PipelineState | None = None,
) -> PipelineResult:
    """
    Evaluate rules in the given order, feeding each rule's output state to the next.
    """
    current = state or PipelineState()
    evaluations: list[RuleEvaluation] = []

    for rule in rules:
        current, evaluation = evaluate_rule(rule, facts, current)
        evaluations.append(evaluation)

    return PipelineResult(state=current, evaluations=evaluations)


def parse_rules(rows: Iterable[Mapping[str, Any]]) -> list[ComboRule]:
    """
    Parse raw rule rows, refusing the whole batch if any row is malformed.
    """
    rules: list[ComboRule] = []
    errors: list[str] = []

    for index, row in enumerate(rows):
        try:
            rules.append(parse_combo_rule(row))
        except InvalidComboRuleError as e:
            label = e.rule_id or f"#{index}"
            errors.extend(f"rule {label}: {msg}" for msg in e.errors)

    if errors:
        raise InvalidComboRuleError(errors)
    return rules


def run_pipeline_from_rows(
    rows: Iterable[Mapping[str, Any]],
    facts: Facts,
    state: PipelineState | None = None,
) -> PipelineResult:
    return run_pipeline(parse_rules(rows), facts, state)
