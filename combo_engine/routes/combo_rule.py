from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from combo_engine.models.combo_rule import ComboRuleValidationResult
from combo_engine.repositories.combo_rule import (
    ComboRuleRepository,
    JsonComboRuleRepository,
)
from combo_engine.repositories.errors import RepoError
from combo_engine.repositories.motion import JsonMotionRepository, MotionRepository
from combo_engine.rules.lint import lint_combo_rules
from combo_engine.rules.validator import validate_combo_rule
from combo_engine.utils.log import logger

router = APIRouter(prefix="/combo-rules", tags=["combo-rules"])


def get_combo_rule_repo() -> ComboRuleRepository:  # pragma: no cover
    """Fetch the combo rule repo"""
    return JsonComboRuleRepository()


def get_motion_repo() -> MotionRepository:  # pragma: no cover
    """Fetch the motion repo"""
    return JsonMotionRepository()


@router.post("/validate", response_model=ComboRuleValidationResult)
def validate_rule(rule: dict[str, Any]):
    """Structural check of a rule before it is saved. Always 200, see 'valid'."""
    result = validate_combo_rule(rule)
    logger.info(f"Validated combo rule {rule.get('id')!r}: valid={result.valid}")
    return result


@router.get("/lint")
def lint_rules(
    rules_repo: ComboRuleRepository = Depends(get_combo_rule_repo),
    motion_repo: MotionRepository = Depends(get_motion_repo),
):
    """Lint every stored combo rule against the motions table"""
    try:
        rows = rules_repo.get_all_rows()
        motion_ids = {m.id for m in motion_repo.get_all()}
    except RepoError:
        logger.exception("Error loading tables for combo rule lint")
        raise HTTPException(status_code=500, detail="Error loading tables")

    report = lint_combo_rules(rows, motion_ids)
    logger.info(f"Linted {len(rows)} combo rules: {report.summary}")
    return {"issues": report.issues, "summary": report.summary}
