class ComboRuleError(Exception):
    """Base class for combo rule engine errors."""

    pass


class InvalidComboRuleError(ComboRuleError):
    """Raised when a malformed rule reaches an evaluation entry point."""

    def __init__(self, errors: list[str], rule_id: str | None = None):
        self.errors = list(errors)
        self.rule_id = rule_id
        label = f"Combo rule {rule_id!r}" if rule_id else "Combo rule"
        super().__init__(f"{label} failed validation: {'; '.join(self.errors)}")


class ComboRuleDefect(ComboRuleError):
    """A rule shape the evaluator cannot handle. Validation was skipped upstream."""

    pass


class UnknownMuscleError(ComboRuleError):
    """A delta named a muscle missing from the base scores under the 'error' policy."""

    pass
