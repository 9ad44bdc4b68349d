from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    field_validator,
)
from pydantic_core import PydanticCustomError

KeyStr = Annotated[str, StringConstraints(min_length=1)]

Operator = Literal["eq", "in", "not_eq", "not_in"]
ActionType = Literal["SWITCH_MOTION", "REPLACE_DELTA", "CLAMP_MUSCLE"]

ACTION_TYPES: tuple[str, ...] = ("SWITCH_MOTION", "REPLACE_DELTA", "CLAMP_MUSCLE")


def _require_number(v: Any) -> Any:
    # JSON numbers only: no booleans, no numeric strings
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise PydanticCustomError("number_type", "Input should be a number")
    return v


Number = Annotated[float, BeforeValidator(_require_number)]


class TriggerCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    tableKey: KeyStr
    operator: Operator
    value: str | list[str]

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v: Any) -> Any:
        if isinstance(v, str) and v:
            return v
        if isinstance(v, list) and all(isinstance(item, str) for item in v):
            return v
        raise PydanticCustomError(
            "condition_value",
            "Input should be a non-empty string or a list of strings",
        )

    @property
    def values(self) -> list[str]:
        """The condition value as a list, a single string becoming a singleton."""
        return [self.value] if isinstance(self.value, str) else list(self.value)


# ───────────── Payloads ─────────────


class SwitchMotionPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    proxy_motion_id: KeyStr


class ReplaceDeltaPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    table_key: KeyStr
    row_id: KeyStr
    deltas: dict[str, Number]


class ClampMusclePayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    clamps: dict[str, Number]


PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    "SWITCH_MOTION": SwitchMotionPayload,
    "REPLACE_DELTA": ReplaceDeltaPayload,
    "CLAMP_MUSCLE": ClampMusclePayload,
}


# ───────────── Rules ─────────────


class ComboRuleBase(BaseModel):
    """
    Columns shared by every stored combo rule row.
    Rules are frozen once loaded, edits produce a new validated version.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    motion_id: str | None = None
    label: str = ""
    # no coercion from strings
    priority: int = Field(0, strict=True)
    sort_order: int = Field(0, strict=True)
    is_active: bool = Field(True, strict=True)

    trigger_conditions_json: list[TriggerCondition] = Field(min_length=1)

    @property
    def specificity(self) -> int:
        return len(self.trigger_conditions_json)


class SwitchMotionRule(ComboRuleBase):
    action_type: Literal["SWITCH_MOTION"]
    action_payload_json: SwitchMotionPayload


class ReplaceDeltaRule(ComboRuleBase):
    action_type: Literal["REPLACE_DELTA"]
    action_payload_json: ReplaceDeltaPayload


class ClampMuscleRule(ComboRuleBase):
    action_type: Literal["CLAMP_MUSCLE"]
    action_payload_json: ClampMusclePayload


ComboRule = Annotated[
    Union[SwitchMotionRule, ReplaceDeltaRule, ClampMuscleRule],
    Field(discriminator="action_type"),
]

combo_rule_adapter = TypeAdapter(ComboRule)
trigger_conditions_adapter = TypeAdapter(list[TriggerCondition])


class ComboRuleValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
