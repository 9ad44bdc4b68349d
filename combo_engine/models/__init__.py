from .combo_rule import (
    ClampMusclePayload,
    ClampMuscleRule,
    ComboRule,
    ComboRuleValidationResult,
    ReplaceDeltaPayload,
    ReplaceDeltaRule,
    SwitchMotionPayload,
    SwitchMotionRule,
    TriggerCondition,
)
from .evaluation import PipelineResult, PipelineState, RuleEvaluation
from .modifier import ModifierRow
from .motion import Motion, Muscle
from .scoring import ComboRuleResolution, ModifierSelection, ResolvedDelta, ScorePolicy

__all__ = [
    "TriggerCondition",
    "SwitchMotionPayload",
    "ReplaceDeltaPayload",
    "ClampMusclePayload",
    "SwitchMotionRule",
    "ReplaceDeltaRule",
    "ClampMuscleRule",
    "ComboRule",
    "ComboRuleValidationResult",
    "PipelineState",
    "PipelineResult",
    "RuleEvaluation",
    "Motion",
    "Muscle",
    "ModifierRow",
    "ModifierSelection",
    "ComboRuleResolution",
    "ResolvedDelta",
    "ScorePolicy",
]
