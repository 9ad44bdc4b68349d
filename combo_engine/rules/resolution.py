"""
Motion-level combo rule resolution for a set of selected modifiers.

Matching is order independent: selections are grouped into a set of row ids
per table before any rule is checked. Matches are ranked by specificity
(number of conditions), then priority, then id.
"""

from functools import cmp_to_key
from typing import Sequence

from combo_engine.models.combo_rule import (
    ClampMuscleRule,
    ComboRule,
    ReplaceDeltaRule,
    SwitchMotionRule,
)
from combo_engine.models.scoring import (
    ComboRuleResolution,
    ModifierSelection,
    RuleFired,
    WinnerReason,
)
from combo_engine.rules.evaluator import facts_from_mapping, rule_fires
from combo_engine.utils.log import logger


def selections_to_facts(selections: Sequence[ModifierSelection]) -> dict[str, set[str]]:
    by_table: dict[str, set[str]] = {}
    for sel in selections:
        by_table.setdefault(sel.tableKey, set()).add(sel.rowId)
    return by_table


def compare_rules(a: ComboRule, b: ComboRule) -> int:
    """Negative when a outranks b."""
    if a.specificity != b.specificity:
        return b.specificity - a.specificity
    if a.priority != b.priority:
        return b.priority - a.priority
    if a.id < b.id:
        return -1
    if a.id > b.id:
        return 1
    return 0


def winner_reason(winner: ComboRule, others: Sequence[ComboRule]) -> WinnerReason:
    if not others:
        return "only match"
    if all(o.specificity < winner.specificity for o in others):
        return "highest specificity"
    if all(o.priority < winner.priority for o in others):
        return "priority tie-break"
    return "id tie-break"


def _fired(rule: ComboRule, others: Sequence[ComboRule]) -> RuleFired:
    return RuleFired(
        rule_id=rule.id,
        rule_label=rule.label,
        action_type=rule.action_type,
        matched_conditions=list(rule.trigger_conditions_json),
        specificity=rule.specificity,
        priority=rule.priority,
        winner_reason=winner_reason(rule, others),
    )


def resolve_combo_rules(
    motion_id: str,
    selected_modifiers: Sequence[ModifierSelection],
    rules: Sequence[ComboRule],
) -> ComboRuleResolution:
    """
    Decide which of a motion's active rules fire for the selected modifiers.

    SWITCH_MOTION is exclusive, only the top ranked match applies.
    REPLACE_DELTA and CLAMP_MUSCLE matches all contribute, clamps keeping the
    lowest cap per muscle.
    """
    lookup = facts_from_mapping(selections_to_facts(selected_modifiers))

    matching = [
        rule
        for rule in rules
        if rule.motion_id == motion_id
        and rule.is_active
        and rule.trigger_conditions_json
        and rule_fires(rule, lookup)
    ]
    matching.sort(key=cmp_to_key(compare_rules))

    switches = [r for r in matching if isinstance(r, SwitchMotionRule)]
    replaces = [r for r in matching if isinstance(r, ReplaceDeltaRule)]
    clamps = [r for r in matching if isinstance(r, ClampMuscleRule)]

    resolution = ComboRuleResolution(effective_motion_id=motion_id)

    if switches:
        winner = switches[0]
        resolution.effective_motion_id = winner.action_payload_json.proxy_motion_id
        resolution.rules_fired.append(_fired(winner, switches[1:]))

    for rule in replaces:
        resolution.delta_overrides.append(rule.action_payload_json)
        resolution.rules_fired.append(_fired(rule, [r for r in replaces if r is not rule]))

    for rule in clamps:
        for muscle_id, cap in rule.action_payload_json.clamps.items():
            current = resolution.clamp_map.get(muscle_id)
            resolution.clamp_map[muscle_id] = cap if current is None else min(current, cap)
        resolution.rules_fired.append(_fired(rule, [r for r in clamps if r is not rule]))

    logger.debug(
        f"Resolved {len(resolution.rules_fired)} combo rules for motion {motion_id}, "
        f"effective motion {resolution.effective_motion_id}"
    )
    return resolution
