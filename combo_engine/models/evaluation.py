from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .combo_rule import ActionType

RowFields = dict[str, float]


class PipelineState(BaseModel):
    """
    The record a rule pipeline transforms.

    rows is keyed table_key -> row_id -> field -> value.
    Each applied rule produces a new state, states are never mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    motion_id: str | None = None
    rows: dict[str, dict[str, RowFields]] = Field(default_factory=dict)
    scores: dict[str, float] = Field(default_factory=dict)

    def get_row(self, table_key: str, row_id: str) -> RowFields:
        return dict(self.rows.get(table_key, {}).get(row_id, {}))


# ───────────── Effects ─────────────


class MotionSwitch(BaseModel):
    kind: Literal["switch_motion"] = "switch_motion"
    rule_id: str
    from_motion_id: str | None
    proxy_motion_id: str


class DeltaApplication(BaseModel):
    kind: Literal["replace_delta"] = "replace_delta"
    rule_id: str
    table_key: str
    row_id: str
    deltas: dict[str, float]
    before: RowFields
    after: RowFields


class ScoreClamp(BaseModel):
    kind: Literal["clamp_muscle"] = "clamp_muscle"
    rule_id: str
    clamps: dict[str, float]
    # only muscles present in the scores are listed
    before: dict[str, float]
    after: dict[str, float]


RuleEffect = Annotated[
    Union[MotionSwitch, DeltaApplication, ScoreClamp],
    Field(discriminator="kind"),
]


class RuleEvaluation(BaseModel):
    rule_id: str
    action_type: ActionType
    fired: bool
    effect: RuleEffect | None = None


class PipelineResult(BaseModel):
    state: PipelineState
    evaluations: list[RuleEvaluation] = Field(default_factory=list)

    @property
    def fired(self) -> list[RuleEvaluation]:
        return [e for e in self.evaluations if e.fired]
