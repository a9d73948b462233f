# crudui/services/sql_builder.py
"""
Statement construction for table listings and row-level writes.

Statements are SQLAlchemy Core constructs over lightweight table clauses built
from the introspected column names, so identifiers are quoted by the dialect
compiler and every value travels as a bound parameter.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple

from sqlalchemy import (
    Date, DateTime, String, Time, and_, cast, delete, func, insert, literal, or_, select, text, update
)
from sqlalchemy.engine import Dialect
from sqlalchemy.sql import Select, column, table as table_clause

from crudui.core.exceptions import InvalidFieldError, ReadOnlyTableError
from crudui.models.query_state import QueryState
from crudui.models.table import ColumnDescriptor, TableDescriptor

logger = logging.getLogger(__name__)

CUSTOM_SQL_ALIAS = "custom_view"

TRUE_VALUES = ("1", "true", "t", "yes", "y", "on")


class ListQuery(NamedTuple):
    select: Select
    count: Select


def source(table: TableDescriptor):
    """FROM clause for the table, or the wrapped subquery of a custom SQL table"""
    columns = [column(c.name) for c in table.columns]
    if table.custom_sql:
        sql = table.custom_sql.strip().rstrip(";")
        return text(sql).columns(*columns).subquery(CUSTOM_SQL_ALIAS)
    return table_clause(table.name, *columns)


def _ensure_writable(table: TableDescriptor) -> None:
    if table.read_only:
        raise ReadOnlyTableError(table.name)


def _bind(value: Any) -> Any:
    """Attach a SQL type to temporal values so each dialect can convert them"""
    if isinstance(value, datetime):
        return literal(value, DateTime())
    if isinstance(value, date):
        return literal(value, Date())
    if isinstance(value, time):
        return literal(value, Time())
    return value


def coerce_value(col: ColumnDescriptor, raw: Any) -> Any:
    """Convert a submitted form string into a value matching the column type"""
    if raw is None or not isinstance(raw, str):
        return raw

    value = raw.strip()
    is_temporal = col.is_datetime or col.is_time or "date" in col.type_words
    is_text = not (col.is_boolean or col.is_numeric or is_temporal)
    if value == "" and not is_text:
        return None

    try:
        if col.is_boolean:
            return value.lower() in TRUE_VALUES
        if col.is_integer:
            return int(value)
        if col.is_float:
            return float(value)
        if col.is_datetime:
            return datetime.fromisoformat(value)
        if "date" in col.type_words:
            return date.fromisoformat(value)
        if col.is_time:
            return time.fromisoformat(value)
    except ValueError:
        logger.debug(f"Could not convert {raw!r} for {col.name} ({col.type}), passing it through")
        return raw

    return raw


def coerce_key(table: TableDescriptor, key: Any) -> Any:
    return coerce_value(table.primary_key, key)


def _search_clause(src, table: TableDescriptor, term: str):
    # Every column takes part, each with its own %term% parameter
    return or_(*[
        cast(src.c[c.name], String).ilike(f"%{term}%")
        for c in table.columns
    ])


def _where_clause(src, table: TableDescriptor, state: QueryState):
    conditions = []

    if state.search:
        conditions.append(_search_clause(src, table, state.search))

    date_filter = state.date_filter
    if date_filter is not None and date_filter.column in src.c:
        target = src.c[date_filter.column]
        if date_filter.start is not None:
            conditions.append(target >= literal(date_filter.start, Date()))
        if date_filter.end is not None:
            conditions.append(target < literal(date_filter.end + timedelta(days=1), Date()))

    if not conditions:
        return None
    return and_(*conditions)


def build_list_query(table: TableDescriptor, state: QueryState,
                     page_size: Optional[int] = None) -> ListQuery:
    """
    Listing SELECT and its matching COUNT(*) for the given state.

    Without page_size the SELECT is unpaginated, as used for CSV export.
    """
    src = source(table)
    where = _where_clause(src, table, state)

    stmt = select(src)
    count_stmt = select(func.count()).select_from(src)
    if where is not None:
        stmt = stmt.where(where)
        count_stmt = count_stmt.where(where)

    for key in state.sort:
        if key.column not in src.c:
            continue
        target = src.c[key.column]
        stmt = stmt.order_by(target.desc() if key.descending else target.asc())

    if page_size:
        stmt = stmt.limit(page_size).offset((state.page - 1) * page_size)

    return ListQuery(stmt, count_stmt)


def build_select_one(table: TableDescriptor, key: Any) -> Select:
    src = source(table)
    return select(src).where(src.c[table.primary_key.name] == _bind(coerce_key(table, key))).limit(1)


def build_insert(table: TableDescriptor, form: Mapping[str, Any]):
    """INSERT over every column except the key, NULL for fields the form left out"""
    _ensure_writable(table)
    src = source(table)
    values = {
        c.name: _bind(coerce_value(c, form.get(c.name)))
        for c in table.editable_columns
    }
    return insert(src).values(values)


def build_update(table: TableDescriptor, key: Any, form: Mapping[str, Any]):
    """UPDATE of the submitted non-key columns, None when nothing was submitted"""
    _ensure_writable(table)
    src = source(table)
    values = {
        c.name: _bind(coerce_value(c, form[c.name]))
        for c in table.editable_columns
        if c.name in form
    }
    if not values:
        return None
    pk = src.c[table.primary_key.name]
    return update(src).where(pk == _bind(coerce_key(table, key))).values(values)


def build_inline_update(table: TableDescriptor, key: Any, field: str, value: Any):
    """Single-field UPDATE; the field must be a known, non-key column"""
    _ensure_writable(table)
    target = table.column(field) if field else None
    if target is None or target.name == table.primary_key.name:
        raise InvalidFieldError(table.name, field)

    src = source(table)
    pk = src.c[table.primary_key.name]
    return (
        update(src)
        .where(pk == _bind(coerce_key(table, key)))
        .values({target.name: _bind(coerce_value(target, value))})
    )


def build_delete(table: TableDescriptor, key: Any):
    _ensure_writable(table)
    src = source(table)
    return delete(src).where(src.c[table.primary_key.name] == _bind(coerce_key(table, key)))


def compile_statement(stmt, dialect: Optional[Dialect] = None) -> Tuple[str, Dict[str, Any]]:
    """SQL text and bound parameters of a statement, for logging and inspection"""
    compiled = stmt.compile(dialect=dialect)
    return str(compiled), dict(compiled.params)
