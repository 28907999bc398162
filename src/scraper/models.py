"""
Menu record data model.

One `MenuRecord` is one output row. Field declaration order is the column order
used both for the JSON wire form and for spreadsheet export.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, Tuple

UNCATEGORIZED = "Uncategorized"
UNAVAILABLE = "Unavailable"


@dataclass(frozen=True)
class MenuRecord:
    category: str
    item: str
    description: str = ""
    price: str = ""
    comment: str = ""

    @property
    def is_unavailable(self) -> bool:
        return self.comment == UNAVAILABLE

    def as_row(self) -> Tuple[str, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, str]:
        """Wire form keyed by column header (`Category`, `Item`, ...)."""
        return dict(zip(COLUMNS, self.as_row()))


COLUMNS: Tuple[str, ...] = tuple(f.name.capitalize() for f in fields(MenuRecord))
