# crudui/models/state.py
from dataclasses import dataclass
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncEngine

from crudui.models.config import AdminConfig
from crudui.models.table import TableDescriptor


@dataclass(frozen=True)
class AdminState:
    """Configuration, engine and table registry the routes are built from"""
    config: AdminConfig
    engine: AsyncEngine
    tables: Dict[str, TableDescriptor]

    @property
    def base_path(self) -> str:
        return self.config.root_path

    def visible_tables(self) -> List[TableDescriptor]:
        return [table for table in self.tables.values() if not table.hidden]
