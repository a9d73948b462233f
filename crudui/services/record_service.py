# crudui/services/record_service.py
import logging
from typing import Any, Dict, List, Mapping, Tuple

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from crudui.core.exceptions import RecordNotFoundError
from crudui.models.query_state import QueryState
from crudui.models.table import TableDescriptor
from crudui.services import sql_builder
from crudui.services.pagination import PageInfo

logger = logging.getLogger(__name__)


class RecordService:
    """Runs the statements for one table on the shared engine"""

    def __init__(self, engine: AsyncEngine, table: TableDescriptor):
        self.engine = engine
        self.table = table

    def _log(self, stmt) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            sql, params = sql_builder.compile_statement(stmt, self.engine.dialect)
            logger.debug(f"{self.table.name}: {sql} {params}")

    async def _execute(self, conn: AsyncConnection, stmt):
        self._log(stmt)
        return await conn.execute(stmt)

    async def fetch_page(self, state: QueryState) -> Tuple[List[Dict[str, Any]], PageInfo]:
        """Rows of the requested page plus the total count over the same filter"""
        page_size = self.table.effective_page_size
        query = sql_builder.build_list_query(self.table, state, page_size)

        async with self.engine.connect() as conn:
            total = (await self._execute(conn, query.count)).scalar() or 0
            result = await self._execute(conn, query.select)
            rows = [dict(row) for row in result.mappings()]

        return rows, PageInfo(page=state.page, page_size=page_size, total_records=total)

    async def fetch_all(self, state: QueryState) -> List[Dict[str, Any]]:
        """Every row matching the filter, in sort order, for CSV export"""
        query = sql_builder.build_list_query(self.table, state)
        async with self.engine.connect() as conn:
            result = await self._execute(conn, query.select)
            return [dict(row) for row in result.mappings()]

    async def get(self, key: Any) -> Dict[str, Any]:
        stmt = sql_builder.build_select_one(self.table, key)
        async with self.engine.connect() as conn:
            row = (await self._execute(conn, stmt)).mappings().first()
        if row is None:
            raise RecordNotFoundError(self.table.name, key)
        return dict(row)

    async def create(self, form: Mapping[str, Any]) -> None:
        stmt = sql_builder.build_insert(self.table, form)
        async with self.engine.begin() as conn:
            await self._execute(conn, stmt)
        logger.info(f"Inserted record into {self.table.name}")

    async def update(self, key: Any, form: Mapping[str, Any]) -> None:
        stmt = sql_builder.build_update(self.table, key, form)
        if stmt is None:
            logger.debug(f"Nothing to update on {self.table.name} {key!r}")
            return
        async with self.engine.begin() as conn:
            result = await self._execute(conn, stmt)
        if result.rowcount == 0:
            raise RecordNotFoundError(self.table.name, key)
        logger.info(f"Updated {self.table.name} {key!r}")

    async def update_field(self, key: Any, field: str, value: Any) -> None:
        stmt = sql_builder.build_inline_update(self.table, key, field, value)
        async with self.engine.begin() as conn:
            result = await self._execute(conn, stmt)
        if result.rowcount == 0:
            raise RecordNotFoundError(self.table.name, key)
        logger.info(f"Updated {self.table.name}.{field} for {key!r}")

    async def delete(self, key: Any) -> None:
        stmt = sql_builder.build_delete(self.table, key)
        async with self.engine.begin() as conn:
            result = await self._execute(conn, stmt)
        if result.rowcount == 0:
            raise RecordNotFoundError(self.table.name, key)
        logger.info(f"Deleted {self.table.name} {key!r}")
