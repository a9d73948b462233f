# crudui/models/config.py
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.engine import URL, make_url


class ConfigModel(BaseModel):
    """Frozen model that accepts camelCase keys from the JSON config file"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore"
    )


class DatabaseConfig(ConfigModel):
    driver: str = "postgresql+asyncpg"
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None

    # A full SQLAlchemy URL takes precedence over the individual fields
    url: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        if self.url:
            return True
        if self.driver.startswith("sqlite"):
            return bool(self.database)
        return bool(self.host and self.user and self.database)

    def sqlalchemy_url(self) -> URL:
        """Build the async SQLAlchemy URL for this configuration"""
        if self.url:
            return make_url(self.url)
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database
        )

    def safe_target(self) -> str:
        """Connection target for log lines, never includes the password"""
        return self.sqlalchemy_url().render_as_string(hide_password=True)


class PaginationConfig(ConfigModel):
    enabled: bool = True
    page_size: int = Field(50, ge=1)


class ColumnConfig(ConfigModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    visible: bool = True
    sortable: bool = True
    searchable: bool = True
    resizable: bool = True
    view_renderer: Optional[str] = None
    edit_renderer: Optional[str] = None
    date_column: bool = False


class TableConfig(ConfigModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    hidden: bool = False
    custom_sql: Optional[str] = None
    pagination: PaginationConfig = PaginationConfig()
    instant_search: bool = True
    advanced_search: bool = True
    date_filters: bool = True
    resizable_columns: bool = True
    sortable_columns: bool = True
    duplicate: bool = True
    columns: Tuple[ColumnConfig, ...] = ()

    def column(self, column_name: str) -> Optional[ColumnConfig]:
        for column in self.columns:
            if column.name == column_name:
                return column
        return None


class UiConfig(ConfigModel):
    title: str = "CrudUI"
    modern_theme: bool = True
    show_table_links: bool = True


class FeaturesConfig(ConfigModel):
    db_error_ui: bool = Field(True, alias="dbErrorUI")


def _merge(base: BaseModel, override: Optional[BaseModel], model: type) -> Any:
    """Overlay the explicitly set fields of override on top of base"""
    data: Dict[str, Any] = base.model_dump()
    if override is not None:
        for key, value in override.model_dump(exclude_unset=True).items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
    return model.model_validate(data)


class AdminConfig(ConfigModel):
    """Static configuration for the whole admin UI"""
    database: DatabaseConfig = DatabaseConfig()
    root_path: str = ""
    default_table: TableConfig = TableConfig()
    default_column: ColumnConfig = ColumnConfig()
    tables: Tuple[TableConfig, ...] = ()
    ui: UiConfig = UiConfig()
    features: FeaturesConfig = FeaturesConfig()

    @field_validator("root_path")
    @classmethod
    def normalize_root_path(cls, value: str) -> str:
        value = (value or "").strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    def _table_override(self, table_name: str) -> Optional[TableConfig]:
        for table in self.tables:
            if table.name == table_name:
                return table
        return None

    def table_config(self, table_name: str) -> TableConfig:
        """Table configuration with defaultTable applied under the overrides"""
        merged = _merge(self.default_table, self._table_override(table_name), TableConfig)
        if merged.name != table_name:
            merged = merged.model_copy(update={"name": table_name})
        return merged

    def column_config(self, table_name: str, column_name: str) -> ColumnConfig:
        """Column configuration with defaultColumn applied under the overrides"""
        override = None
        table = self._table_override(table_name)
        if table is not None:
            override = table.column(column_name)
        merged = _merge(self.default_column, override, ColumnConfig)
        if merged.name != column_name:
            merged = merged.model_copy(update={"name": column_name})
        return merged

    def custom_tables(self) -> List[TableConfig]:
        return [self.table_config(t.name) for t in self.tables if t.name and t.custom_sql]
