from .errors import (
    ComboRuleDefect,
    ComboRuleError,
    InvalidComboRuleError,
    UnknownMuscleError,
)
from .evaluator import (
    apply_rule,
    condition_matches,
    evaluate_rule,
    rule_fires,
    run_pipeline,
    run_pipeline_from_rows,
)
from .resolution import resolve_combo_rules
from .validator import parse_combo_rule, validate_combo_rule

__all__ = [
    "ComboRuleError",
    "ComboRuleDefect",
    "InvalidComboRuleError",
    "UnknownMuscleError",
    "validate_combo_rule",
    "parse_combo_rule",
    "condition_matches",
    "rule_fires",
    "apply_rule",
    "evaluate_rule",
    "run_pipeline",
    "run_pipeline_from_rows",
    "resolve_combo_rules",
]
