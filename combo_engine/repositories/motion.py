from typing import List, Protocol

from pydantic import ValidationError

from combo_engine.models.motion import Motion
from combo_engine.repositories.base import JsonTableRepository
from combo_engine.repositories.errors import MotionRepoError, RepoError
from combo_engine.settings import settings
from combo_engine.utils.log import logger


class MotionRepository(Protocol):
    def get_all(self) -> List[Motion]: ...


class JsonMotionRepository(JsonTableRepository[Motion]):
    table_key = settings.MOTIONS_TABLE

    def _to_model(self, item: dict) -> Motion:
        try:
            return Motion(**item)
        except ValidationError as e:
            logger.exception(f"Invalid motion row {item.get('id')!r}")
            raise MotionRepoError("Invalid motion row") from e

    def get_all_rows(self) -> List[dict]:
        try:
            return self._safe_read()
        except RepoError as e:
            raise MotionRepoError("Failed to get motions") from e

    def get_all(self) -> List[Motion]:
        return [self._to_model(row) for row in self.get_all_rows()]

    def replace_all_rows(self, rows: List[dict]) -> None:
        try:
            self._safe_write(rows)
        except RepoError as e:
            raise MotionRepoError("Failed to write motions") from e
