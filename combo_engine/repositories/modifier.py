from pathlib import Path
from typing import Dict, Iterable, List, Protocol

from pydantic import ValidationError

from combo_engine.models.modifier import ModifierRow
from combo_engine.repositories.base import JsonTableRepository
from combo_engine.repositories.errors import ModifierRepoError, RepoError
from combo_engine.settings import settings
from combo_engine.utils.log import logger


class ModifierRepository(Protocol):
    def get_modifier_tables(self) -> Dict[str, Dict[str, ModifierRow]]: ...


class JsonModifierTable(JsonTableRepository[ModifierRow]):
    """
    One modifier table file, e.g. grips.json.
    """

    def __init__(self, table_key: str, tables_dir: str | Path | None = None):
        super().__init__(tables_dir)
        self.table_key = table_key

    def _to_model(self, item: dict) -> ModifierRow:
        return ModifierRow(**item)

    def get_active_rows(self) -> List[ModifierRow]:
        """Active rows of the table. Rows that fail validation are skipped and logged."""
        rows: List[ModifierRow] = []
        for item in self._safe_read():
            try:
                row = self._to_model(item)
            except ValidationError:
                logger.warning(
                    f"Skipping invalid modifier row {item.get('id')!r} in {self.table_key}"
                )
                continue
            if row.is_active:
                rows.append(row)
        return rows


class JsonModifierRepository:
    """
    Every configured modifier table, read through the JSON table store.
    """

    def __init__(
        self,
        tables_dir: str | Path | None = None,
        table_keys: Iterable[str] | None = None,
    ):
        self._tables_dir = tables_dir
        self._table_keys = list(table_keys if table_keys is not None else settings.MODIFIER_TABLES)

    def get_modifier_tables(self) -> Dict[str, Dict[str, ModifierRow]]:
        """Return {table_key: {row_id: row}} for every configured table"""
        tables: Dict[str, Dict[str, ModifierRow]] = {}
        for table_key in self._table_keys:
            table = JsonModifierTable(table_key, self._tables_dir)
            try:
                rows = table.get_active_rows()
            except RepoError as e:
                raise ModifierRepoError(f"Failed to get modifier table {table_key}") from e
            tables[table_key] = {row.id: row for row in rows}
        return tables
