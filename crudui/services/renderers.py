# crudui/services/renderers.py
"""
Named cell renderers.

A view renderer turns a stored value into display HTML for the grid and the
record view; an edit renderer produces the form control for a column. Columns
pick one of each by name through viewRenderer / editRenderer in the config.
"""
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

import orjson
from markupsafe import Markup, escape

from crudui.models.table import ColumnDescriptor

logger = logging.getLogger(__name__)

DEFAULT_VIEW_RENDERER = "text"
DEFAULT_EDIT_RENDERER = "input"
TRUNCATE_AT = 350
ELLIPSIS = "…"

ViewRenderer = Callable[[Any, ColumnDescriptor], Markup]
EditRenderer = Callable[[Any, ColumnDescriptor], Markup]

_view_renderers: Dict[str, ViewRenderer] = {}
_edit_renderers: Dict[str, EditRenderer] = {}


def register_view_renderer(name: str):
    def decorator(func: ViewRenderer) -> ViewRenderer:
        _view_renderers[name] = func
        return func
    return decorator


def register_edit_renderer(name: str):
    def decorator(func: EditRenderer) -> EditRenderer:
        _edit_renderers[name] = func
        return func
    return decorator


def has_view_renderer(name: Optional[str]) -> bool:
    return name in _view_renderers


def has_edit_renderer(name: Optional[str]) -> bool:
    return name in _edit_renderers


def to_text(value: Any) -> str:
    """Plain string form of a stored value, empty for NULL"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (dict, list)):
        return orjson.dumps(value, default=str).decode()
    return str(value)


def truncate(text: str, limit: int = TRUNCATE_AT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def render_view(value: Any, column: ColumnDescriptor) -> Markup:
    renderer = _view_renderers.get(column.view_renderer or DEFAULT_VIEW_RENDERER)
    if renderer is None:
        renderer = _view_renderers[DEFAULT_VIEW_RENDERER]
    return renderer(value, column)


def render_edit(value: Any, column: ColumnDescriptor) -> Markup:
    renderer = _edit_renderers.get(column.edit_renderer or DEFAULT_EDIT_RENDERER)
    if renderer is None:
        renderer = _edit_renderers[DEFAULT_EDIT_RENDERER]
    return renderer(value, column)


# View renderers

@register_view_renderer("text")
def text_view(value: Any, column: ColumnDescriptor) -> Markup:
    return escape(truncate(to_text(value)))


@register_view_renderer("date")
def date_view(value: Any, column: ColumnDescriptor) -> Markup:
    if isinstance(value, datetime):
        value = value.date()
    text = to_text(value)
    return escape(text[:10])


@register_view_renderer("datetime")
def datetime_view(value: Any, column: ColumnDescriptor) -> Markup:
    if isinstance(value, datetime):
        return escape(value.strftime("%Y-%m-%d %H:%M:%S"))
    return escape(to_text(value).replace("T", " ")[:19])


@register_view_renderer("email")
def email_view(value: Any, column: ColumnDescriptor) -> Markup:
    text = to_text(value)
    if not text:
        return Markup("")
    return Markup('<a href="mailto:{0}">{1}</a>').format(text, truncate(text))


@register_view_renderer("url")
def url_view(value: Any, column: ColumnDescriptor) -> Markup:
    text = to_text(value)
    if not text.lower().startswith(("http://", "https://")):
        return escape(truncate(text))
    return Markup('<a href="{0}" target="_blank" rel="noopener">{1}</a>').format(text, truncate(text))


@register_view_renderer("boolean")
def boolean_view(value: Any, column: ColumnDescriptor) -> Markup:
    if value is None or value == "":
        return Markup("")
    truthy = to_text(value).lower() in ("1", "true", "t", "yes", "y", "on")
    return Markup('<span class="bool bool-{0}">{1}</span>').format(
        "yes" if truthy else "no", "✓" if truthy else "✗"
    )


@register_view_renderer("json")
def json_view(value: Any, column: ColumnDescriptor) -> Markup:
    if isinstance(value, str):
        try:
            value = orjson.loads(value)
        except orjson.JSONDecodeError:
            return escape(truncate(value))
    if value is None:
        return Markup("")
    pretty = orjson.dumps(value, default=str, option=orjson.OPT_INDENT_2).decode()
    return Markup("<pre class=\"json\">{0}</pre>").format(truncate(pretty))


# Edit renderers

def input_type(column: ColumnDescriptor) -> str:
    """HTML input type inferred from the column type string and name"""
    name = column.name.lower()
    if "password" in name:
        return "password"
    if "email" in name:
        return "email"
    if column.is_boolean:
        return "text"
    if column.is_datetime:
        return "datetime-local"
    if "date" in column.type_words:
        return "date"
    if column.is_time:
        return "time"
    if column.is_numeric:
        return "number"
    return "text"


def input_value(value: Any, kind: str) -> str:
    if value is None:
        return ""
    if kind == "datetime-local":
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%dT%H:%M:%S")
        return to_text(value).replace(" ", "T")[:19]
    if kind == "date":
        return to_text(value)[:10]
    return to_text(value)


@register_edit_renderer("input")
def input_edit(value: Any, column: ColumnDescriptor) -> Markup:
    kind = input_type(column)
    step = Markup(' step="any"') if kind in ("number", "datetime-local", "time") else Markup("")
    return Markup('<input type="{0}" name="{1}" value="{2}" class="form-control"{3}>').format(
        kind, column.name, input_value(value, kind), step
    )


@register_edit_renderer("textarea")
def textarea_edit(value: Any, column: ColumnDescriptor) -> Markup:
    return Markup('<textarea name="{0}" class="form-control" rows="4">{1}</textarea>').format(
        column.name, to_text(value)
    )


@register_edit_renderer("readonly")
def readonly_edit(value: Any, column: ColumnDescriptor) -> Markup:
    return Markup('<input type="text" name="{0}" value="{1}" class="form-control" readonly>').format(
        column.name, to_text(value)
    )
