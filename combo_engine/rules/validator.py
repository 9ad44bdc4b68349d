"""
Authoring-time structural validation of combo rules.

Every problem is collected so an author sees the whole list in one pass.
Nothing here touches the table store.
"""

from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from combo_engine.models.combo_rule import (
    ACTION_TYPES,
    PAYLOAD_MODELS,
    ComboRule,
    ComboRuleValidationResult,
    combo_rule_adapter,
    trigger_conditions_adapter,
)
from combo_engine.rules.errors import InvalidComboRuleError

TRIGGERS_FIELD = "trigger_conditions_json"
PAYLOAD_FIELD = "action_payload_json"


def format_error_path(root: str, loc: Sequence[int | str]) -> str:
    """
    Render a pydantic error location under a root field name, e.g.
    (1, "operator") under trigger_conditions_json -> trigger_conditions_json[1].operator
    """
    path = root
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


def _collect(errors: list[str], root: str, exc: ValidationError) -> None:
    for issue in exc.errors():
        errors.append(f"{format_error_path(root, issue['loc'])}: {issue['msg']}")


def validate_combo_rule(rule: Mapping[str, Any]) -> ComboRuleValidationResult:
    """
    Check action_type, trigger conditions and payload shape of a candidate rule.
    Never raises, the verdict carries every error found.
    """
    errors: list[str] = []
    action_type = rule.get("action_type")

    if action_type not in ACTION_TYPES:
        errors.append(
            f'Invalid action_type "{action_type}". '
            f"Must be one of: {', '.join(ACTION_TYPES)}"
        )

    try:
        conditions = trigger_conditions_adapter.validate_python(rule.get(TRIGGERS_FIELD))
    except ValidationError as e:
        _collect(errors, TRIGGERS_FIELD, e)
    else:
        if len(conditions) == 0:
            errors.append(f"{TRIGGERS_FIELD} must have at least one condition")

    payload_model = PAYLOAD_MODELS.get(action_type) if isinstance(action_type, str) else None
    if payload_model is not None:
        try:
            payload_model.model_validate(rule.get(PAYLOAD_FIELD))
        except ValidationError as e:
            _collect(errors, PAYLOAD_FIELD, e)

    return ComboRuleValidationResult(valid=not errors, errors=errors)


def parse_combo_rule(rule: Mapping[str, Any]) -> ComboRule:
    """
    Validate a raw rule row and return the typed rule.
    Raises InvalidComboRuleError with the full error list when it is malformed.
    """
    result = validate_combo_rule(rule)
    rule_id = rule.get("id")
    if not result.valid:
        raise InvalidComboRuleError(result.errors, rule_id=str(rule_id) if rule_id else None)

    try:
        return combo_rule_adapter.validate_python(dict(rule))
    except ValidationError as e:
        # row metadata (id, priority, ...) is outside the authored blobs
        errors: list[str] = []
        _collect(errors, "rule", e)
        raise InvalidComboRuleError(errors, rule_id=str(rule_id) if rule_id else None) from e
