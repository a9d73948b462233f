# crudui/models/query_state.py
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Tuple

ASC = "asc"
DESC = "desc"

# Synthetic grid columns holding the View and Edit/Delete buttons
ACTIONS_COLUMN = "__actions__"
EDIT_DELETE_COLUMN = "__editdelete__"
ACTION_COLUMNS = (ACTIONS_COLUMN, EDIT_DELETE_COLUMN)


@dataclass(frozen=True)
class SortKey:
    column: str
    direction: str = ASC

    @property
    def descending(self) -> bool:
        return self.direction == DESC

    def toggled(self) -> "SortKey":
        return SortKey(self.column, ASC if self.descending else DESC)


@dataclass(frozen=True)
class DateFilter:
    column: str
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass(frozen=True)
class QueryState:
    """View state of one table listing, rebuilt from the URL on every request"""
    search: str = ""
    sort: Tuple[SortKey, ...] = ()
    visible: Tuple[str, ...] = ACTION_COLUMNS
    page: int = 1
    date_filter: Optional[DateFilter] = None

    @property
    def visible_data_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self.visible if c not in ACTION_COLUMNS)

    def is_visible(self, column: str) -> bool:
        return column in self.visible

    def sort_direction(self, column: str) -> Optional[str]:
        for key in self.sort:
            if key.column == column:
                return key.direction
        return None

    def with_page(self, page: int) -> "QueryState":
        return replace(self, page=max(1, page))
