# crudui/services/csv_export.py
import csv
import io
from typing import Any, Dict, Iterable, List, Optional, Sequence

from crudui.models.table import ColumnDescriptor


def escape_csv(value: Any) -> str:
    """Single CSV field: empty for None, quoted with doubled quotes when needed"""
    if value is None or value == "":
        return ""
    output = io.StringIO()
    # QUOTE_MINIMAL wraps a field only when it holds a comma, quote or newline
    csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n").writerow([value])
    return output.getvalue()[:-1]


def csv_line(values: Iterable[Any]) -> str:
    # Joined by hand: csv.writer quotes a row made of one empty field
    return ",".join(escape_csv(value) for value in values)


def export_columns(columns: Sequence[ColumnDescriptor],
                   visible: Optional[Iterable[str]] = None) -> List[ColumnDescriptor]:
    """Visible data columns in table order, or every column when none are selected"""
    wanted = set(visible or ())
    chosen = [c for c in columns if c.name in wanted]
    return chosen or list(columns)


def render_csv(columns: Sequence[ColumnDescriptor], rows: Iterable[Dict[str, Any]],
               visible: Optional[Iterable[str]] = None) -> str:
    """CSV body with a header row of field names; NULL becomes an empty field"""
    out_columns = export_columns(columns, visible)
    lines = [csv_line(c.name for c in out_columns)]
    lines.extend(csv_line(row.get(c.name) for c in out_columns) for row in rows)
    return "\n".join(lines) + "\n"
