# crudui/services/schema_service.py
"""
Database introspection: builds the table registry the UI is generated from.
"""
import logging
import time
from dataclasses import replace
from typing import Dict, List

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncConnection

from crudui.models.config import AdminConfig, TableConfig
from crudui.models.table import PRIMARY_KEY, ColumnDescriptor, TableDescriptor
from crudui.services.renderers import has_edit_renderer, has_view_renderer
from crudui.services.sql_builder import CUSTOM_SQL_ALIAS

logger = logging.getLogger(__name__)


def _type_string(column_type, dialect) -> str:
    try:
        return column_type.compile(dialect=dialect)
    except Exception:
        # Types without a compiler for this dialect still have a usable name
        return type(column_type).__name__.upper()


async def list_tables(conn: AsyncConnection) -> List[str]:
    return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


async def list_columns(conn: AsyncConnection, table_name: str) -> List[ColumnDescriptor]:
    """Columns in declaration order with their type string and key role"""
    def _inspect(sync_conn) -> List[ColumnDescriptor]:
        inspector = inspect(sync_conn)
        pk_constraint = inspector.get_pk_constraint(table_name) or {}
        primary_keys = set(pk_constraint.get("constrained_columns") or ())
        return [
            ColumnDescriptor(
                name=column["name"],
                type=_type_string(column["type"], sync_conn.dialect),
                key=PRIMARY_KEY if column["name"] in primary_keys else "",
                nullable=column.get("nullable", True)
            )
            for column in inspector.get_columns(table_name)
        ]

    return await conn.run_sync(_inspect)


async def custom_sql_columns(conn: AsyncConnection, sql: str) -> List[str]:
    """Result column names of a custom query, without fetching any rows"""
    sql = sql.strip().rstrip(";")
    result = await conn.execute(text(f"SELECT * FROM ({sql}) AS {CUSTOM_SQL_ALIAS} LIMIT 0"))
    names = list(result.keys())
    result.close()
    return names


def _describe_column(config: AdminConfig, table_name: str, column: ColumnDescriptor) -> ColumnDescriptor:
    overrides = config.column_config(table_name, column.name)

    view_renderer = overrides.view_renderer
    if view_renderer and not has_view_renderer(view_renderer):
        logger.warning(f"Unknown view renderer {view_renderer!r} for {table_name}.{column.name}, using default")
        view_renderer = None

    edit_renderer = overrides.edit_renderer
    if edit_renderer and not has_edit_renderer(edit_renderer):
        logger.warning(f"Unknown edit renderer {edit_renderer!r} for {table_name}.{column.name}, using default")
        edit_renderer = None

    return replace(
        column,
        display_name=overrides.display_name,
        visible=overrides.visible,
        sortable=overrides.sortable,
        searchable=overrides.searchable,
        resizable=overrides.resizable,
        view_renderer=view_renderer,
        edit_renderer=edit_renderer,
        date_column=overrides.date_column
    )


def describe_table(config: AdminConfig, table_config: TableConfig,
                   columns: List[ColumnDescriptor]) -> TableDescriptor:
    """Merge the table configuration over its introspected columns"""
    name = table_config.name
    return TableDescriptor(
        name=name,
        columns=tuple(_describe_column(config, name, c) for c in columns),
        display_name=table_config.display_name,
        description=table_config.description,
        hidden=table_config.hidden,
        custom_sql=table_config.custom_sql,
        pagination_enabled=table_config.pagination.enabled,
        page_size=table_config.pagination.page_size,
        instant_search=table_config.instant_search,
        advanced_search=table_config.advanced_search,
        date_filters=table_config.date_filters,
        resizable_columns=table_config.resizable_columns,
        sortable_columns=table_config.sortable_columns,
        duplicate=table_config.duplicate
    )


async def build_registry(conn: AsyncConnection, config: AdminConfig) -> Dict[str, TableDescriptor]:
    """Ordered {name: TableDescriptor} of every visible table, custom SQL tables last"""
    start_time = time.time()
    registry: Dict[str, TableDescriptor] = {}

    for table_name in await list_tables(conn):
        table_config = config.table_config(table_name)
        if table_config.hidden:
            logger.debug(f"Skipping hidden table {table_name}")
            continue
        if table_config.custom_sql:
            continue

        columns = await list_columns(conn, table_name)
        if not columns:
            logger.warning(f"Table {table_name} has no columns, skipping")
            continue
        registry[table_name] = describe_table(config, table_config, columns)

    for table_config in config.custom_tables():
        if table_config.hidden:
            continue
        if table_config.name in registry:
            logger.warning(f"Custom table {table_config.name} replaces the database table of the same name")
        names = await custom_sql_columns(conn, table_config.custom_sql)
        if not names:
            logger.warning(f"Custom table {table_config.name} returns no columns, skipping")
            continue
        registry[table_config.name] = describe_table(
            config, table_config, [ColumnDescriptor(name=n) for n in names]
        )

    elapsed = time.time() - start_time
    logger.info(f"Discovered {len(registry)} tables in {elapsed:.2f}s")
    return registry
