import json
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def tables_dir(tmp_path) -> Path:
    return tmp_path / "tables"


@pytest.fixture
def write_table(tables_dir) -> Callable[[str, object], Path]:
    """
    Fixture returning a helper that writes a JSON table file.
    Example:
        write_table("motions", [{"id": "PRESS"}])
    """

    def _write(table_key: str, data: object) -> Path:
        tables_dir.mkdir(parents=True, exist_ok=True)
        path = tables_dir / f"{table_key}.json"
        text = data if isinstance(data, str) else json.dumps(data)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
