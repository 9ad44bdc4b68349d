from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from combo_engine.models.evaluation import PipelineResult, PipelineState
from combo_engine.models.scoring import ModifierSelection
from combo_engine.repositories.combo_rule import (
    ComboRuleRepository,
    JsonComboRuleRepository,
)
from combo_engine.repositories.errors import RepoError
from combo_engine.repositories.modifier import (
    JsonModifierRepository,
    ModifierRepository,
)
from combo_engine.repositories.motion import JsonMotionRepository, MotionRepository
from combo_engine.rules.errors import InvalidComboRuleError, UnknownMuscleError
from combo_engine.rules.evaluator import run_pipeline_from_rows
from combo_engine.rules.resolution import resolve_combo_rules
from combo_engine.utils.activation import compute_activation
from combo_engine.utils.deltas import resolve_all_deltas
from combo_engine.utils.log import logger

router = APIRouter(prefix="/scoring", tags=["scoring"])


def get_combo_rule_repo() -> ComboRuleRepository:  # pragma: no cover
    """Fetch the combo rule repo"""
    return JsonComboRuleRepository()


def get_motion_repo() -> MotionRepository:  # pragma: no cover
    """Fetch the motion repo"""
    return JsonMotionRepository()


def get_modifier_repo() -> ModifierRepository:  # pragma: no cover
    """Fetch the modifier tables repo"""
    return JsonModifierRepository()


class EvaluateRequest(BaseModel):
    rules: list[dict[str, Any]] = Field(min_length=1)
    facts: dict[str, str | list[str]] = Field(default_factory=dict)
    state: PipelineState = Field(default_factory=PipelineState)


class ComputeRequest(BaseModel):
    motion_id: str = Field(min_length=1)
    selected_modifiers: list[ModifierSelection] = Field(default_factory=list)
    policy: dict[str, Any] | None = None


@router.post("/evaluate", response_model=PipelineResult)
def evaluate_rules(body: EvaluateRequest):
    """Run the given rules as an ordered pipeline over the facts and state"""
    try:
        result = run_pipeline_from_rows(body.rules, body.facts, body.state)
    except InvalidComboRuleError as e:
        logger.info(f"Refusing to evaluate malformed combo rules: {e.errors}")
        raise HTTPException(status_code=422, detail=e.errors)

    logger.info(f"Evaluated {len(body.rules)} combo rules, {len(result.fired)} fired")
    return result


@router.post("/compute")
def compute(
    body: ComputeRequest,
    rules_repo: ComboRuleRepository = Depends(get_combo_rule_repo),
    motion_repo: MotionRepository = Depends(get_motion_repo),
    modifier_repo: ModifierRepository = Depends(get_modifier_repo),
):
    """Resolve stored combo rules and modifier deltas for a motion and compute muscle activation"""
    logger.info(f"Computing activation for motion {body.motion_id}")

    try:
        motions_by_id = {m.id: m for m in motion_repo.get_all()}
        motion = motions_by_id.get(body.motion_id)
        if motion is None:
            raise HTTPException(
                status_code=404, detail=f'Motion "{body.motion_id}" not found'
            )
        rules = rules_repo.get_active_for_motion(body.motion_id)
        modifier_tables = modifier_repo.get_modifier_tables()
    except RepoError:
        logger.exception(f"Error loading tables for motion {body.motion_id}")
        raise HTTPException(status_code=500, detail="Error loading tables")

    resolution = resolve_combo_rules(body.motion_id, body.selected_modifiers, rules)
    effective = motions_by_id.get(resolution.effective_motion_id, motion)
    resolved_deltas = resolve_all_deltas(
        resolution.effective_motion_id,
        body.selected_modifiers,
        motions_by_id,
        modifier_tables,
    )

    try:
        result = compute_activation(
            effective.muscle_targets,
            resolved_deltas,
            body.policy,
            delta_overrides=resolution.delta_overrides,
            clamp_map=resolution.clamp_map,
        )
    except (UnknownMuscleError, ValidationError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "motion_id": motion.id,
        "motion_label": motion.label,
        "effective_motion_id": resolution.effective_motion_id,
        "rules_fired": resolution.rules_fired,
        **result.model_dump(),
    }
