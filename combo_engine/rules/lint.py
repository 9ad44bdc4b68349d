from typing import Any, Iterable, Literal, Mapping

from pydantic import BaseModel, Field

from combo_engine.rules.validator import validate_combo_rule

Severity = Literal["error", "warning", "info"]


class LintIssue(BaseModel):
    rule_id: str
    severity: Severity
    message: str


class LintReport(BaseModel):
    issues: list[LintIssue] = Field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        counts = {"error": 0, "warning": 0, "info": 0}
        for issue in self.issues:
            counts[issue.severity] += 1
        return counts


def lint_combo_rules(
    rows: Iterable[Mapping[str, Any]], motion_ids: set[str]
) -> LintReport:
    """
    Validate every stored rule and check the motion references the
    structural validator does not look at.
    """
    report = LintReport()

    for index, row in enumerate(rows):
        rule_id = str(row.get("id") or f"#{index}")

        def add(severity: Severity, message: str) -> None:
            report.issues.append(
                LintIssue(rule_id=rule_id, severity=severity, message=message)
            )

        for error in validate_combo_rule(row).errors:
            add("error", error)

        motion_id = row.get("motion_id")
        if motion_id not in motion_ids:
            add("error", f'motion_id "{motion_id}" does not match any motion')

        payload = row.get("action_payload_json")
        if row.get("action_type") == "SWITCH_MOTION" and isinstance(payload, Mapping):
            proxy = payload.get("proxy_motion_id")
            if isinstance(proxy, str) and proxy:
                if proxy not in motion_ids:
                    add("error", f'proxy_motion_id "{proxy}" does not match any motion')
                elif proxy == motion_id:
                    add("warning", "SWITCH_MOTION rule switches to its own motion")

        if row.get("is_active") is False:
            add("info", "rule is inactive")

    return report
