# crudui/models/table.py
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

PRIMARY_KEY = "PRI"

INTEGER_TYPES = {
    "int", "integer", "tinyint", "smallint", "mediumint", "bigint", "serial", "smallserial", "bigserial"
}
FLOAT_TYPES = {"decimal", "dec", "numeric", "number", "float", "double", "real", "money"}
DATETIME_TYPES = {"datetime", "smalldatetime", "datetimeoffset", "timestamp", "timestamptz"}
BOOLEAN_TYPES = {"bool", "boolean", "bit"}
TYPE_WORD = re.compile(r"[a-z][a-z0-9_]*")


@dataclass(frozen=True)
class ColumnDescriptor:
    """Introspected column metadata merged with per-column overrides"""
    name: str
    type: str = ""
    key: str = ""
    nullable: bool = True
    display_name: Optional[str] = None
    visible: bool = True
    sortable: bool = True
    searchable: bool = True
    resizable: bool = True
    view_renderer: Optional[str] = None
    edit_renderer: Optional[str] = None
    date_column: bool = False

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @property
    def type_name(self) -> str:
        return self.type.lower()

    @property
    def type_words(self) -> Tuple[str, ...]:
        """Words of the type string without size suffixes: "int4" gives ("int",), "int4range" stays whole"""
        return tuple(word.rstrip("0123456789") for word in TYPE_WORD.findall(self.type_name))

    def _has_type(self, names) -> bool:
        return any(word in names for word in self.type_words)

    @property
    def is_integer(self) -> bool:
        return self._has_type(INTEGER_TYPES)

    @property
    def is_float(self) -> bool:
        return self._has_type(FLOAT_TYPES)

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self.is_float

    @property
    def is_boolean(self) -> bool:
        return self._has_type(BOOLEAN_TYPES) or self.type_name == "tinyint(1)"

    @property
    def is_datetime(self) -> bool:
        return self._has_type(DATETIME_TYPES)

    @property
    def is_time(self) -> bool:
        return "time" in self.type_words and not self.is_datetime

    @property
    def is_date(self) -> bool:
        """Columns offered to the date filter: calendar dates and timestamps, never bare times"""
        return self.date_column or self.is_datetime or "date" in self.type_words


@dataclass(frozen=True)
class TableDescriptor:
    """Everything the UI needs to know about one table, fixed for the engine's lifetime"""
    name: str
    columns: Tuple[ColumnDescriptor, ...]
    display_name: Optional[str] = None
    description: Optional[str] = None
    hidden: bool = False
    custom_sql: Optional[str] = None
    pagination_enabled: bool = True
    page_size: int = 50
    instant_search: bool = True
    advanced_search: bool = True
    date_filters: bool = True
    resizable_columns: bool = True
    sortable_columns: bool = True
    duplicate: bool = True
    column_index: dict = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "column_index", {c.name: c for c in self.columns})

    @property
    def title(self) -> str:
        return self.display_name or self.name

    @property
    def summary(self) -> str:
        if self.description:
            return self.description
        if self.is_custom:
            return f"Custom table: {self.name}"
        return f"Manage {self.name} records"

    @property
    def is_custom(self) -> bool:
        return bool(self.custom_sql)

    @property
    def read_only(self) -> bool:
        return self.is_custom

    @property
    def primary_key(self) -> ColumnDescriptor:
        """First column by declaration order, used as the key for every CRUD operation"""
        return self.columns[0]

    @property
    def editable_columns(self) -> Tuple[ColumnDescriptor, ...]:
        return self.columns[1:]

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    @property
    def date_columns(self) -> Tuple[ColumnDescriptor, ...]:
        return tuple(c for c in self.columns if c.is_date)

    def column(self, name: str) -> Optional[ColumnDescriptor]:
        return self.column_index.get(name)

    @property
    def effective_page_size(self) -> Optional[int]:
        return self.page_size if self.pagination_enabled else None
