from typing import Dict, List

import pytest

from combo_engine.models.combo_rule import ComboRule
from combo_engine.models.modifier import ModifierRow
from combo_engine.models.motion import Motion
from combo_engine.repositories.errors import (
    ComboRuleRepoError,
    ModifierRepoError,
    MotionRepoError,
)
from combo_engine.routes import combo_rule as combo_rule_routes
from combo_engine.routes import scoring as scoring_routes
from combo_engine.rules.validator import parse_combo_rule
from tests.test_data import GRIP_ROWS, MOTION_ROWS

# ---------------- Combo rules --------------------


class FakeComboRuleRepo:
    """
    Tiny fake to stand in for JsonComboRuleRepository in route tests.
    """

    def __init__(self):
        self.rows: List[dict] = []
        self.motion_calls: List[str] = []
        self.should_fail = False

    def get_all_rows(self) -> List[dict]:
        if self.should_fail:
            raise ComboRuleRepoError("boom")
        return self.rows

    def get_active_for_motion(self, motion_id: str) -> List[ComboRule]:
        self.motion_calls.append(motion_id)
        return [
            parse_combo_rule(row)
            for row in self.get_all_rows()
            if row.get("motion_id") == motion_id
        ]


# ---------------- Motions --------------------


class FakeMotionRepo:
    def __init__(self):
        self.motions = {row["id"]: Motion(**row) for row in MOTION_ROWS}
        self.should_fail = False

    def get_all(self) -> List[Motion]:
        if self.should_fail:
            raise MotionRepoError("boom")
        return list(self.motions.values())


# ---------------- Modifiers --------------------


class FakeModifierRepo:
    def __init__(self):
        self.tables = {"grips": {row["id"]: ModifierRow(**row) for row in GRIP_ROWS}}
        self.should_fail = False

    def get_modifier_tables(self) -> Dict[str, Dict[str, ModifierRow]]:
        if self.should_fail:
            raise ModifierRepoError("boom")
        return self.tables


@pytest.fixture
def fake_combo_rule_repo():
    return FakeComboRuleRepo()


@pytest.fixture
def fake_motion_repo():
    return FakeMotionRepo()


@pytest.fixture
def fake_modifier_repo():
    return FakeModifierRepo()


@pytest.fixture
def api_client(
    app_instance, client, fake_combo_rule_repo, fake_motion_repo, fake_modifier_repo
):
    """
    Client with the table repositories overridden by in-memory fakes.
    """
    overrides = {
        combo_rule_routes.get_combo_rule_repo: lambda: fake_combo_rule_repo,
        combo_rule_routes.get_motion_repo: lambda: fake_motion_repo,
        scoring_routes.get_combo_rule_repo: lambda: fake_combo_rule_repo,
        scoring_routes.get_motion_repo: lambda: fake_motion_repo,
        scoring_routes.get_modifier_repo: lambda: fake_modifier_repo,
    }
    app_instance.dependency_overrides.update(overrides)

    try:
        yield client
    finally:
        for dep in overrides:
            app_instance.dependency_overrides.pop(dep, None)
