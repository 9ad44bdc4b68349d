from typing import Literal

from pydantic import BaseModel, Field

from .combo_rule import ActionType, ReplaceDeltaPayload, TriggerCondition

MissingKeyBehavior = Literal["skip", "zero", "error"]
WinnerReason = Literal[
    "only match", "highest specificity", "priority tie-break", "id tie-break"
]


class ModifierSelection(BaseModel):
    tableKey: str = Field(min_length=1)
    rowId: str = Field(min_length=1)


class RuleFired(BaseModel):
    rule_id: str
    rule_label: str
    action_type: ActionType
    matched_conditions: list[TriggerCondition]
    specificity: int
    priority: int
    winner_reason: WinnerReason


class ComboRuleResolution(BaseModel):
    effective_motion_id: str
    delta_overrides: list[ReplaceDeltaPayload] = Field(default_factory=list)
    clamp_map: dict[str, float] = Field(default_factory=dict)
    rules_fired: list[RuleFired] = Field(default_factory=list)


class ScorePolicy(BaseModel):
    clampMin: float = 0
    clampMax: float = 5
    normalizeOutput: bool = False
    missingKeyBehavior: MissingKeyBehavior = "skip"


class ResolvedDelta(BaseModel):
    """Per-muscle deltas contributed by one selected modifier row."""

    modifier_table: str
    modifier_id: str
    motion_id: str = ""
    deltas: dict[str, float] = Field(default_factory=dict)
    # motions walked through before an explicit entry was found
    inherited: bool = False
    inherit_chain: list[str] | None = None


class ActivationResult(BaseModel):
    base_scores: dict[str, float]
    applied_deltas: list[ResolvedDelta]
    raw_scores: dict[str, float]
    final_scores: dict[str, float]
