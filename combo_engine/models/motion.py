from typing import Any

from pydantic import BaseModel, Field


class Motion(BaseModel):
    id: str
    label: str = ""
    parent_id: str | None = None
    # may still be a nested legacy tree, see utils.muscle_tree
    muscle_targets: dict[str, Any] = Field(default_factory=dict)


class Muscle(BaseModel):
    id: str
    label: str = ""
    parent_ids: list[str] | str | None = None
