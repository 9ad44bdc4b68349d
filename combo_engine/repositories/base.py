import json
import os
from pathlib import Path
from typing import Generic, List, TypeVar

from combo_engine.repositories.errors import RepoError
from combo_engine.settings import settings
from combo_engine.utils.log import logger

T = TypeVar("T")


class JsonTableRepository(Generic[T]):
    """
    Base class for repositories backed by a JSON table file
    (a JSON array of row objects) with common read/write error handling.
    """

    table_key: str = ""

    def __init__(self, tables_dir: str | Path | None = None):
        self._tables_dir = Path(tables_dir or settings.TABLES_DIR)

    @property
    def table_path(self) -> Path:
        path = (self._tables_dir / f"{self.table_key}.json").resolve()
        if self._tables_dir.resolve() not in path.parents:
            raise RepoError(f"Invalid table key: {self.table_key}")
        return path

    def _to_model(self, item: dict) -> T:
        """This should be overridden in subclasses"""
        raise NotImplementedError

    def _safe_read(self) -> List[dict]:
        """Read every row of the table, a missing file reads as empty"""
        path = self.table_path
        if not path.exists():
            logger.debug(f"Table file {path} does not exist, treating as empty")
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.exception(f"Reading table {self.table_key} failed")
            raise RepoError("Failed to read table") from e

        if not isinstance(data, list):
            raise RepoError(f"Table {self.table_key} is not a JSON array")
        return [row for row in data if isinstance(row, dict)]

    def _safe_write(self, rows: List[dict]) -> None:
        """Write rows atomically via a temp file and replace"""
        path = self.table_path
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(rows, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            logger.exception(f"Writing table {self.table_key} failed")
            raise RepoError("Failed to write table") from e
