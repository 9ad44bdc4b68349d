import logging

import pytest

from combo_engine.models.combo_rule import TriggerCondition
from combo_engine.models.evaluation import (
    DeltaApplication,
    MotionSwitch,
    PipelineState,
    ScoreClamp,
)
from combo_engine.rules import evaluator
from combo_engine.rules.errors import ComboRuleDefect, InvalidComboRuleError
from combo_engine.rules.evaluator import (
    apply_rule,
    condition_matches,
    evaluate_rule,
    facts_from_mapping,
    rule_fires,
    run_pipeline,
    run_pipeline_from_rows,
)


def cond(operator: str, value, table_key: str = "equipment") -> TriggerCondition:
    return TriggerCondition(tableKey=table_key, operator=operator, value=value)


MOTION_ROW_STATE = PipelineState(rows={"motions": {"m1": {"chest": 0.5, "back": 0.4}}})


# ───────────── Conditions ─────────────


@pytest.mark.parametrize(
    "operator, value, fact, expected",
    [
        ("eq", "Barbell", "Barbell", True),
        ("eq", "Barbell", "Dumbbell", False),
        ("not_eq", "Barbell", "Dumbbell", True),
        ("not_eq", "Barbell", "Barbell", False),
        ("in", ["Barbell", "Cable"], "Cable", True),
        ("in", ["Barbell", "Cable"], "Dumbbell", False),
        ("in", "Barbell", "Barbell", True),
        ("not_in", ["Barbell", "Cable"], "Dumbbell", True),
        ("not_in", ["Barbell", "Cable"], "Barbell", False),
        ("not_in", "Barbell", "Barbell", False),
    ],
)
def test_condition_operators(operator, value, fact, expected):
    assert condition_matches(cond(operator, value), {"equipment": fact}) is expected


@pytest.mark.parametrize("operator", ["eq", "not_eq", "in", "not_in"])
def test_missing_fact_never_matches(operator):
    value = "Barbell" if operator in ("eq", "not_eq") else ["Barbell"]

    assert condition_matches(cond(operator, value), {}) is False
    assert condition_matches(cond(operator, value), {"equipment": None}) is False


def test_collection_fact_matches_on_membership():
    facts = {"grips": {"NEUTRAL", "WIDE"}}

    assert condition_matches(cond("eq", "WIDE", "grips"), facts) is True
    assert condition_matches(cond("in", ["CLOSE", "NEUTRAL"], "grips"), facts) is True
    assert condition_matches(cond("not_in", ["CLOSE"], "grips"), facts) is True
    assert condition_matches(cond("not_eq", "WIDE", "grips"), facts) is False


@pytest.mark.parametrize("operator", ["eq", "not_eq"])
def test_list_value_with_eq_operators_is_never_true_and_warns(operator, caplog):
    with caplog.at_level(logging.WARNING, logger="combo_engine"):
        matched = condition_matches(cond(operator, ["Barbell"]), {"equipment": "Dumbbell"})

    assert matched is False
    assert "list value" in caplog.text


def test_fact_lookup_function_is_called_per_condition(make_rule):
    calls = []

    def facts(table_key):
        calls.append(table_key)
        return None

    rule = make_rule(
        trigger_conditions_json=[
            {"tableKey": "equipment", "operator": "eq", "value": "Barbell"},
            {"tableKey": "grips", "operator": "eq", "value": "NEUTRAL"},
        ]
    )

    assert rule_fires(rule, facts) is False
    assert calls == ["equipment", "grips"]


def test_rule_fires_only_when_all_conditions_hold(make_rule):
    rule = make_rule(
        trigger_conditions_json=[
            {"tableKey": "equipment", "operator": "eq", "value": "Barbell"},
            {"tableKey": "grips", "operator": "in", "value": ["NEUTRAL", "CLOSE"]},
        ]
    )

    assert rule_fires(rule, {"equipment": "Barbell", "grips": "CLOSE"}) is True
    assert rule_fires(rule, {"equipment": "Barbell", "grips": "WIDE"}) is False
    assert rule_fires(rule, {"equipment": "Barbell"}) is False


def test_facts_from_mapping_returns_none_for_missing_keys():
    lookup = facts_from_mapping({"equipment": "Barbell"})

    assert lookup("equipment") == "Barbell"
    assert lookup("grips") is None


# ───────────── Actions ─────────────


def test_switch_motion_fires_for_matching_equipment(make_rule):
    rule = make_rule("SWITCH_MOTION")

    state, evaluation = evaluate_rule(
        rule, {"equipment": "Barbell"}, PipelineState(motion_id="m_row")
    )

    assert evaluation.fired is True
    assert isinstance(evaluation.effect, MotionSwitch)
    assert evaluation.effect.proxy_motion_id == "m_barbell_row"
    assert evaluation.effect.from_motion_id == "m_row"
    assert state.motion_id == "m_barbell_row"


def test_switch_motion_does_not_fire_for_other_equipment(make_rule):
    rule = make_rule("SWITCH_MOTION")
    start = PipelineState(motion_id="m_row")

    state, evaluation = evaluate_rule(rule, {"equipment": "Dumbbell"}, start)

    assert evaluation.fired is False
    assert evaluation.effect is None
    assert state is start


def test_replace_delta_adds_deltas_and_accumulates_on_reapply(make_rule):
    rule = make_rule("REPLACE_DELTA")

    once, first = apply_rule(rule, MOTION_ROW_STATE)
    twice, _ = apply_rule(rule, once)

    assert once.rows["motions"]["m1"] == pytest.approx({"chest": 0.6, "back": 0.35})
    assert twice.rows["motions"]["m1"] == pytest.approx({"chest": 0.7, "back": 0.3})
    assert isinstance(first, DeltaApplication)
    assert first.before == {"chest": 0.5, "back": 0.4}


def test_replace_delta_leaves_other_fields_and_rows_untouched(make_rule):
    rule = make_rule("REPLACE_DELTA")
    start = PipelineState(
        rows={
            "motions": {
                "m1": {"chest": 0.5, "back": 0.4, "legs": 0.2},
                "m2": {"chest": 0.1},
            }
        }
    )

    state, _ = apply_rule(rule, start)

    assert state.rows["motions"]["m1"]["legs"] == 0.2
    assert state.rows["motions"]["m2"] == {"chest": 0.1}
    # the input state is not modified
    assert start.rows["motions"]["m1"]["chest"] == 0.5


def test_replace_delta_on_missing_row_starts_from_zero(make_rule):
    rule = make_rule("REPLACE_DELTA")

    state, _ = apply_rule(rule, PipelineState())

    assert state.rows["motions"]["m1"] == pytest.approx({"chest": 0.1, "back": -0.05})


def test_clamp_muscle_caps_scores_and_ignores_absent_muscles(make_rule):
    rule = make_rule(
        "CLAMP_MUSCLE",
        action_payload_json={"clamps": {"TRICEPS": 0.5, "BICEPS": 0.2, "CALVES": 0.1}},
    )
    start = PipelineState(scores={"TRICEPS": 0.72, "BICEPS": 0.1})

    state, effect = apply_rule(rule, start)

    assert state.scores == {"TRICEPS": 0.5, "BICEPS": 0.1}
    assert isinstance(effect, ScoreClamp)
    assert effect.before == {"TRICEPS": 0.72, "BICEPS": 0.1}
    assert effect.after == {"TRICEPS": 0.5, "BICEPS": 0.1}
    assert "CALVES" not in state.scores


def test_apply_rule_rejects_unknown_rule_types():
    with pytest.raises(ComboRuleDefect):
        apply_rule(object(), PipelineState())  # type: ignore[arg-type]


# ───────────── Pipeline ─────────────


def test_pipeline_applies_rules_in_order_feeding_state_forward(make_rule):
    rules = [
        make_rule("REPLACE_DELTA", id="first"),
        make_rule("REPLACE_DELTA", id="second"),
    ]

    result = run_pipeline(rules, {"equipment": "Barbell"}, MOTION_ROW_STATE)

    assert [e.rule_id for e in result.evaluations] == ["first", "second"]
    assert result.state.rows["motions"]["m1"] == pytest.approx({"chest": 0.7, "back": 0.3})
    assert len(result.fired) == 2


def test_pipeline_switch_output_feeds_later_triggers(make_rule):
    switch = make_rule("SWITCH_MOTION", action_payload_json={"proxy_motion_id": "PRESS_INCLINE"})
    clamp = make_rule(
        "CLAMP_MUSCLE",
        trigger_conditions_json=[
            {"tableKey": "motions", "operator": "eq", "value": "PRESS_INCLINE"}
        ],
    )
    start = PipelineState(motion_id="PRESS", scores={"TRICEPS": 0.9})

    result = run_pipeline([switch, clamp], {"equipment": "Barbell"}, start)
    reversed_result = run_pipeline([clamp, switch], {"equipment": "Barbell"}, start)

    assert result.state.scores == {"TRICEPS": 0.5}
    assert reversed_result.state.scores == {"TRICEPS": 0.9}
    assert reversed_result.state.motion_id == "PRESS_INCLINE"


def test_pipeline_is_deterministic_for_a_given_order(make_rule):
    rules = [make_rule("REPLACE_DELTA"), make_rule("SWITCH_MOTION")]

    first = run_pipeline(rules, {"equipment": "Barbell"}, MOTION_ROW_STATE)
    second = run_pipeline(rules, {"equipment": "Barbell"}, MOTION_ROW_STATE)

    assert first == second


def test_pipeline_defaults_to_empty_state(make_rule):
    result = run_pipeline([make_rule("SWITCH_MOTION")], {"equipment": "Dumbbell"})

    assert result.state == PipelineState()
    assert result.fired == []


def test_failing_rule_leaves_earlier_effects_intact(make_rule, monkeypatch):
    start = PipelineState(scores={"TRICEPS": 0.9})
    clamped, _ = apply_rule(make_rule("CLAMP_MUSCLE"), start)

    def boom(rule, state):
        raise ComboRuleDefect("boom")

    monkeypatch.setattr(evaluator, "apply_rule", boom)

    with pytest.raises(ComboRuleDefect):
        run_pipeline([make_rule("REPLACE_DELTA")], {"equipment": "Barbell"}, clamped)

    assert clamped.scores == {"TRICEPS": 0.5}
    assert start.scores == {"TRICEPS": 0.9}


def test_run_pipeline_from_rows_refuses_malformed_rules_before_running(rule_row):
    rows = [
        rule_row("SWITCH_MOTION"),
        rule_row("CLAMP_MUSCLE", action_payload_json={}),
        rule_row("REPLACE_DELTA", id=None, trigger_conditions_json=[]),
    ]

    with pytest.raises(InvalidComboRuleError) as exc_info:
        run_pipeline_from_rows(rows, {"equipment": "Barbell"})

    assert exc_info.value.errors == [
        "rule r_clamp: action_payload_json.clamps: Field required",
        "rule #2: trigger_conditions_json must have at least one condition",
    ]


def test_run_pipeline_from_rows_runs_valid_rows(rule_row):
    result = run_pipeline_from_rows(
        [rule_row("SWITCH_MOTION")], {"equipment": "Barbell"}, PipelineState()
    )

    assert result.state.motion_id == "m_barbell_row"
