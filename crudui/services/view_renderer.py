# crudui/services/view_renderer.py
"""
HTML pages of the admin UI.

Each function prepares a plain context and renders one Jinja2 template; none of
them touch the database, so the output depends only on the arguments.
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote

from crudui.models.query_state import ACTION_COLUMNS, ACTIONS_COLUMN, EDIT_DELETE_COLUMN, QueryState
from crudui.models.table import ColumnDescriptor, TableDescriptor
from crudui.services import query_codec
from crudui.services.pagination import PageInfo, page_window
from crudui.services.renderers import render_edit, render_view, to_text
from crudui.templates import templates

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "CrudUI"

MODE_NEW = "new"
MODE_EDIT = "edit"
MODE_DUPLICATE = "duplicate"


def _render(template_name: str, **context) -> str:
    context.setdefault("title", DEFAULT_TITLE)
    context.setdefault("modern_theme", True)
    return templates.get_template(template_name).render(**context)


def record_url(base_path: str, table: TableDescriptor, action: str, key: Any = None) -> str:
    url = f"{query_codec.table_path(base_path, table.name)}/{action}"
    if key is not None:
        url += "/" + quote(to_text(key), safe="")
    return url


def render_index(tables: Sequence[TableDescriptor], base_path: str, **options) -> str:
    """Landing page with one card per table"""
    cards = [
        {
            "name": table.name,
            "title": table.title,
            "summary": table.summary,
            "custom": table.is_custom,
            "url": query_codec.table_path(base_path, table.name)
        }
        for table in tables
    ]
    return _render("index.html", cards=cards, base_path=base_path, **options)


def _toggle_visible(state: QueryState, column: str) -> QueryState:
    visible = list(state.visible_data_columns)
    if column in visible:
        visible.remove(column)
    else:
        visible.append(column)
    return replace(state, visible=tuple(visible) + ACTION_COLUMNS, page=1)


def _header(table: TableDescriptor, column: ColumnDescriptor, state: QueryState,
            base_path: str) -> Dict[str, Any]:
    sortable = table.sortable_columns and column.sortable
    direction = state.sort_direction(column.name)
    header = {
        "name": column.name,
        "label": column.label,
        "css_class": f"sort-{direction}" if direction else "",
        "sortable": sortable,
        "resizable": table.resizable_columns and column.resizable,
        "sort_url": None,
        "sort_url_shift": None
    }
    if sortable:
        header["sort_url"] = query_codec.encode(
            query_codec.header_sort(state, column.name), base_path, table.name
        )
        header["sort_url_shift"] = query_codec.encode(
            query_codec.header_sort(state, column.name, shift=True), base_path, table.name
        )
    return header


def _pagination(table: TableDescriptor, state: QueryState, page_info: PageInfo,
                base_path: str) -> Dict[str, Any]:
    def link(page: int) -> str:
        return query_codec.encode(state.with_page(page), base_path, table.name)

    return {
        "info": page_info,
        "prev_url": link(page_info.page - 1) if page_info.has_prev else None,
        "next_url": link(page_info.page + 1) if page_info.has_next else None,
        "pages": [
            {"number": number, "url": link(number) if number else None, "current": number == page_info.page}
            for number in page_window(page_info)
        ]
    }


def render_table_page(table: TableDescriptor, rows: Sequence[Mapping[str, Any]], state: QueryState,
                      page_info: PageInfo, base_path: str, **options) -> str:
    """Listing page: controls row, data grid and pagination"""
    pk = table.primary_key.name
    visible_columns = [c for c in table.columns if state.is_visible(c.name)]
    editable = not table.read_only

    grid_rows = []
    for row in rows:
        key = row.get(pk)
        cells = []
        for column in visible_columns:
            value = row.get(column.name)
            cells.append({
                "name": column.name,
                "old_value": to_text(value),
                "view": render_view(value, column),
                "edit": render_edit(value, column) if editable and column.name != pk else None
            })
        grid_rows.append({
            "key": to_text(key),
            "cells": cells,
            "view_url": record_url(base_path, table, "view", key),
            "edit_url": record_url(base_path, table, "edit", key),
            "delete_url": record_url(base_path, table, "delete", key),
            "inline_url": record_url(base_path, table, "inline", key)
        })

    column_choices = [
        {
            "name": c.name,
            "label": c.label,
            "checked": state.is_visible(c.name),
            "url": query_codec.encode(_toggle_visible(state, c.name), base_path, table.name)
        }
        for c in table.columns
    ]

    date_filter = state.date_filter
    context = {
        "table": table,
        "base_path": base_path,
        "table_url": query_codec.table_path(base_path, table.name),
        "state": state,
        "editable": editable,
        "headers": [_header(table, c, state, base_path) for c in visible_columns],
        "rows": grid_rows,
        "show_actions": editable and state.is_visible(ACTIONS_COLUMN),
        "show_edit_delete": editable and state.is_visible(EDIT_DELETE_COLUMN),
        "column_choices": column_choices,
        "sort_token": query_codec.sort_token(state),
        "visible_token": query_codec.visible_token(state),
        "csv_url": query_codec.encode(state.with_page(1), base_path, table.name, csv=True),
        "new_url": record_url(base_path, table, "new") if editable else None,
        "date_columns": table.date_columns if table.date_filters else (),
        "date_filter": {
            "column": date_filter.column if date_filter else "",
            "start": date_filter.start.isoformat() if date_filter and date_filter.start else "",
            "end": date_filter.end.isoformat() if date_filter and date_filter.end else ""
        },
        "pagination": _pagination(table, state, page_info, base_path)
    }
    return _render("table_list.html", **context, **options)


def render_record_form(table: TableDescriptor, row: Optional[Mapping[str, Any]], mode: str,
                       action: str, base_path: str, **options) -> str:
    """New, edit and duplicate forms; the key is shown readonly on edit only"""
    row = row or {}
    pk = table.primary_key.name
    fields = []
    for column in table.columns:
        if column.name == pk:
            if mode != MODE_EDIT:
                continue
            fields.append({
                "name": column.name,
                "label": column.label,
                "control": render_edit(row.get(pk), replace(column, edit_renderer="readonly"))
            })
            continue
        fields.append({
            "name": column.name,
            "label": column.label,
            "control": render_edit(row.get(column.name), column)
        })

    headings = {MODE_NEW: "New record", MODE_EDIT: "Edit record", MODE_DUPLICATE: "Duplicate record"}
    return _render(
        "record_form.html",
        table=table,
        base_path=base_path,
        table_url=query_codec.table_path(base_path, table.name),
        heading=headings.get(mode, "Record"),
        mode=mode,
        action=action,
        fields=fields,
        **options
    )


def render_record_view(table: TableDescriptor, row: Mapping[str, Any], key: Any,
                       base_path: str, **options) -> str:
    """Readonly record page that can be switched into an edit form in place"""
    pk = table.primary_key.name
    fields = [
        {
            "name": column.name,
            "label": column.label,
            "is_key": column.name == pk,
            "view": render_view(row.get(column.name), column),
            "control": render_edit(
                row.get(column.name),
                replace(column, edit_renderer="readonly") if column.name == pk else column
            )
        }
        for column in table.columns
    ]
    return _render(
        "record_view.html",
        table=table,
        base_path=base_path,
        table_url=query_codec.table_path(base_path, table.name),
        key=to_text(key),
        fields=fields,
        action=record_url(base_path, table, "view", key),
        duplicate_url=record_url(base_path, table, "duplicate", key) if table.duplicate else None,
        delete_url=record_url(base_path, table, "delete", key),
        **options
    )


def render_error(message: str, status_code: int, base_path: str, **options) -> str:
    return _render("error.html", message=message, status_code=status_code, base_path=base_path, **options)


def render_db_config_form(error: Optional[str], defaults: Mapping[str, Any], base_path: str,
                          **options) -> str:
    """The "Database Connection Required" page shown while no database is reachable"""
    values: List[Dict[str, Any]] = [
        {"name": "host", "label": "Host", "type": "text", "value": defaults.get("host") or ""},
        {"name": "port", "label": "Port", "type": "number", "value": defaults.get("port") or ""},
        {"name": "user", "label": "User", "type": "text", "value": defaults.get("user") or ""},
        {"name": "password", "label": "Password", "type": "password", "value": ""},
        {"name": "database", "label": "Database", "type": "text", "value": defaults.get("database") or ""}
    ]
    return _render(
        "db_config.html",
        error=error,
        fields=values,
        action=f"{base_path}/db-config",
        base_path=base_path,
        **options
    )


def ui_options(ui, base_path: str, tables: Sequence[TableDescriptor] = ()) -> Dict[str, Any]:
    """Page chrome shared by every template: title, theme and the table links"""
    nav_tables = []
    if ui.show_table_links:
        nav_tables = [
            {"title": table.title, "url": query_codec.table_path(base_path, table.name)}
            for table in tables
        ]
    return {"title": ui.title, "modern_theme": ui.modern_theme, "nav_tables": nav_tables}
