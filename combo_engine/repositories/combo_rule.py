from typing import List, Protocol

from combo_engine.models.combo_rule import ComboRule
from combo_engine.repositories.base import JsonTableRepository
from combo_engine.repositories.errors import ComboRuleRepoError, RepoError
from combo_engine.rules.errors import InvalidComboRuleError
from combo_engine.rules.validator import parse_combo_rule
from combo_engine.settings import settings
from combo_engine.utils.log import logger


class ComboRuleRepository(Protocol):
    def get_all_rows(self) -> List[dict]: ...
    def get_active_for_motion(self, motion_id: str) -> List[ComboRule]: ...


class JsonComboRuleRepository(JsonTableRepository[ComboRule]):
    """
    Combo rules stored in the combo_rules JSON table.
    """

    table_key = settings.COMBO_RULES_TABLE

    def _to_model(self, item: dict) -> ComboRule:
        return parse_combo_rule(item)

    def get_all_rows(self) -> List[dict]:
        """
        Return every stored rule row as-is, for linting and authoring views
        """
        try:
            return self._safe_read()
        except RepoError as e:
            raise ComboRuleRepoError("Failed to get combo rules") from e

    def get_active_for_motion(self, motion_id: str) -> List[ComboRule]:
        """
        Return the motion's active rules ordered by priority (desc) then id.
        Rows that fail validation are skipped and logged, they surface in lint.
        """
        rules: List[ComboRule] = []
        for row in self.get_all_rows():
            if row.get("motion_id") != motion_id:
                continue
            try:
                rule = self._to_model(row)
            except InvalidComboRuleError:
                logger.warning(f"Skipping invalid combo rule {row.get('id')!r}")
                continue
            if rule.is_active:
                rules.append(rule)

        rules.sort(key=lambda r: (-r.priority, r.id))
        return rules
