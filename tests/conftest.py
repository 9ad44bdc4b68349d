import copy
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from combo_engine.main import app
from combo_engine.models.combo_rule import ComboRule, combo_rule_adapter
from tests.test_data import CLAMP_RULE_ROW, REPLACE_RULE_ROW, SWITCH_RULE_ROW

BASE_ROWS = {
    "SWITCH_MOTION": SWITCH_RULE_ROW,
    "REPLACE_DELTA": REPLACE_RULE_ROW,
    "CLAMP_MUSCLE": CLAMP_RULE_ROW,
}


# --------------- Rule Factories ---------------


@pytest.fixture
def rule_row() -> Callable[..., dict]:
    """
    Factory fixture returning a raw combo rule row (as stored) with overrides.
    Example:
        row = rule_row("CLAMP_MUSCLE", id="r9", priority=3)
    """

    def _make(action_type: str = "SWITCH_MOTION", **overrides: Any) -> dict:
        base = copy.deepcopy(BASE_ROWS[action_type])
        return {**base, **overrides}

    return _make


@pytest.fixture
def make_rule(rule_row) -> Callable[..., ComboRule]:
    """Factory fixture returning a typed, validated combo rule."""

    def _make(action_type: str = "SWITCH_MOTION", **overrides: Any) -> ComboRule:
        return combo_rule_adapter.validate_python(rule_row(action_type, **overrides))

    return _make


# --------------- Test Clients ---------------


@pytest.fixture(scope="session")
def app_instance():
    return app


@pytest.fixture
def client(app_instance):
    """Plain client, real dependencies."""
    return TestClient(app_instance, raise_server_exceptions=False)
