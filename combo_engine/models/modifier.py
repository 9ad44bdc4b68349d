from typing import Literal

from pydantic import BaseModel, Field

from .combo_rule import Number

INHERIT = "inherit"

# {muscle_id: delta}, {} for home base, or "inherit" to defer to the parent motion
DeltaEntry = dict[str, Number] | Literal["inherit"]


class ModifierRow(BaseModel):
    """A row from any modifier table (grips, stanceWidths, ...)."""

    id: str = Field(min_length=1)
    label: str = ""
    parent_id: str | None = None
    is_active: bool = True
    # keyed by motion id
    delta_rules: dict[str, DeltaEntry] = Field(default_factory=dict)
