# crudui/services/query_codec.py
"""
Round-trips the listing view state (search, sort, visible columns, page and
date filter) through URL query parameters.

Decoding never fails: stale or forged tokens lose the parts that do not match
the table's current columns and fall back to "no sort" / "no filter".
"""
import logging
from dataclasses import replace
from datetime import date
from typing import Collection, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

from crudui.models.query_state import (
    ACTION_COLUMNS, ASC, DESC, DateFilter, QueryState, SortKey
)
from crudui.models.table import ColumnDescriptor, TableDescriptor

logger = logging.getLogger(__name__)

SEARCH_PARAM = "search"
SORT_PARAM = "sort"
VISIBLE_PARAM = "visible"
PAGE_PARAM = "page"
CSV_PARAM = "csv"
DATE_COLUMN_PARAM = "date_col"
DATE_FROM_PARAM = "date_from"
DATE_TO_PARAM = "date_to"


def _split(token: Optional[str]) -> List[str]:
    if not token:
        return []
    return [part.strip() for part in token.split(",")]


def _with_actions(names: Iterable[str]) -> Tuple[str, ...]:
    """Drop duplicates and force the two action columns onto the end"""
    data_columns = [n for n in dict.fromkeys(names) if n and n not in ACTION_COLUMNS]
    return tuple(data_columns) + ACTION_COLUMNS


def _upsert(keys: List[SortKey], key: SortKey) -> List[SortKey]:
    """Replace an existing entry for the same column, otherwise append"""
    for i, existing in enumerate(keys):
        if existing.column == key.column:
            keys[i] = key
            return keys
    keys.append(key)
    return keys


def parse_sort(token: Optional[str], allowed: Collection[str]) -> Tuple[SortKey, ...]:
    """Parse 'col,dir,col,dir' pairs, keeping only columns in allowed"""
    tokens = _split(token)
    keys: List[SortKey] = []
    for i in range(0, len(tokens), 2):
        column = tokens[i]
        direction = tokens[i + 1].lower() if i + 1 < len(tokens) else ASC
        if direction not in (ASC, DESC):
            direction = ASC
        if column not in allowed:
            logger.debug(f"Dropping unknown sort column {column!r}")
            continue
        _upsert(keys, SortKey(column, direction))
    return tuple(keys)


def parse_visible(token: Optional[str], columns: Sequence[ColumnDescriptor]) -> Tuple[str, ...]:
    known = [c.name for c in columns]
    chosen = [name for name in _split(token) if name in known]
    if not chosen:
        chosen = [c.name for c in columns if c.visible] or known
    return _with_actions(chosen)


def parse_page(raw: Optional[str]) -> int:
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def parse_date(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        return None


def sortable_columns(columns: Sequence[ColumnDescriptor],
                     table: Optional[TableDescriptor] = None) -> Tuple[str, ...]:
    if table is not None and not table.sortable_columns:
        return ()
    return tuple(c.name for c in columns if c.sortable)


def _parse_date_filter(params: Mapping[str, str], columns: Sequence[ColumnDescriptor],
                       table: Optional[TableDescriptor]) -> Optional[DateFilter]:
    if table is not None and not table.date_filters:
        return None
    column = params.get(DATE_COLUMN_PARAM)
    if not column or column not in {c.name for c in columns if c.is_date}:
        return None
    start = parse_date(params.get(DATE_FROM_PARAM))
    end = parse_date(params.get(DATE_TO_PARAM))
    if start is None and end is None:
        return None
    return DateFilter(column, start, end)


def decode(params: Mapping[str, str], columns: Sequence[ColumnDescriptor],
           table: Optional[TableDescriptor] = None) -> QueryState:
    """Rebuild the query state from request parameters"""
    return QueryState(
        search=params.get(SEARCH_PARAM) or "",
        sort=parse_sort(params.get(SORT_PARAM), sortable_columns(columns, table)),
        visible=parse_visible(params.get(VISIBLE_PARAM), columns),
        page=parse_page(params.get(PAGE_PARAM)),
        date_filter=_parse_date_filter(params, columns, table)
    )


def sort_token(state: QueryState) -> str:
    return ",".join(f"{key.column},{key.direction}" for key in state.sort)


def visible_token(state: QueryState) -> str:
    return ",".join(_with_actions(state.visible))


def query_params(state: QueryState, csv: bool = False) -> List[Tuple[str, str]]:
    """Ordered query parameters describing the state"""
    params: List[Tuple[str, str]] = []
    if state.search:
        params.append((SEARCH_PARAM, state.search))
    if state.sort:
        params.append((SORT_PARAM, sort_token(state)))
    params.append((VISIBLE_PARAM, visible_token(state)))
    if state.date_filter is not None:
        params.append((DATE_COLUMN_PARAM, state.date_filter.column))
        if state.date_filter.start:
            params.append((DATE_FROM_PARAM, state.date_filter.start.isoformat()))
        if state.date_filter.end:
            params.append((DATE_TO_PARAM, state.date_filter.end.isoformat()))
    if state.page > 1:
        params.append((PAGE_PARAM, str(state.page)))
    if csv:
        params.append((CSV_PARAM, "1"))
    return params


def table_path(base_path: str, table_name: str) -> str:
    return f"{base_path}/{quote(table_name, safe='')}"


def encode(state: QueryState, base_path: str, table_name: str, csv: bool = False) -> str:
    """URL of the table listing that reproduces state"""
    query = urlencode(query_params(state, csv=csv), quote_via=quote, safe=",")
    return f"{table_path(base_path, table_name)}?{query}"


def header_sort(state: QueryState, column: str, shift: bool = False) -> QueryState:
    """
    State after clicking a column header.

    A plain click toggles the column when it is the only sort key and otherwise
    replaces the sort with the column ascending. Shift-click toggles the column
    in place within a multi-column sort, or appends it ascending.
    """
    current = state.sort
    present = any(key.column == column for key in current)

    if shift:
        if present:
            new_sort = tuple(key.toggled() if key.column == column else key for key in current)
        else:
            new_sort = current + (SortKey(column, ASC),)
    elif len(current) == 1 and current[0].column == column:
        new_sort = (current[0].toggled(),)
    else:
        new_sort = (SortKey(column, ASC),)

    return replace(state, sort=new_sort, page=1)
