# crudui/api/dispatcher.py
import logging
import time
from typing import Optional

from starlette.types import ASGIApp, Receive, Scope, Send

from crudui.api.db_config import build_db_config_app
from crudui.api.routes import build_admin_app
from crudui.core.config import Settings, get_settings
from crudui.core.db import create_db_engine
from crudui.models.config import AdminConfig, DatabaseConfig
from crudui.models.state import AdminState
from crudui.services.schema_service import build_registry

logger = logging.getLogger(__name__)


async def initialize_state(config: AdminConfig, settings: Optional[Settings] = None) -> AdminState:
    """Connect, introspect and return the state the admin routes are built from"""
    start_time = time.time()
    engine = await create_db_engine(config.database, settings)
    try:
        async with engine.connect() as conn:
            tables = await build_registry(conn, config)
    except Exception:
        await engine.dispose()
        raise

    elapsed = time.time() - start_time
    logger.info(f"Admin UI ready with {len(tables)} tables in {elapsed:.2f}s")
    return AdminState(config=config, engine=engine, tables=tables)


class AdminDispatcher:
    """
    ASGI app mounted at the root path that forwards every request to the
    current sub-application.

    The sub-application is either the admin routes for the live AdminState or
    the database configuration form. Reconfiguration builds the replacement
    completely before swapping the single `current` reference.
    """

    def __init__(self, config: AdminConfig, settings: Optional[Settings] = None):
        self.config = config
        self.settings = settings or get_settings()
        self.state: Optional[AdminState] = None
        self.current: ASGIApp = self._recovery_app("Database connection has not been initialized")

    def _recovery_app(self, error: Optional[str]) -> ASGIApp:
        return build_db_config_app(self, error)

    def _activate(self, state: AdminState) -> None:
        app = build_admin_app(state)
        self.state = state
        self.config = state.config
        self.current = app

    async def initialize(self) -> None:
        """Build the first state; fall back to the configuration form when the database is unusable"""
        logger.info(f"Initializing admin UI for {self._target(self.config.database)}")
        try:
            state = await initialize_state(self.config, self.settings)
        except Exception as e:
            if not self.config.features.db_error_ui:
                logger.error(f"Database initialization failed: {e}")
                raise
            logger.error(f"Database initialization failed, serving configuration form: {e}")
            self.current = self._recovery_app(str(e))
            return
        self._activate(state)

    async def reconfigure(self, database: DatabaseConfig) -> AdminState:
        """Swap in a state built from new database settings; the current state survives a failure"""
        config = self.config.model_copy(update={"database": database})
        state = await initialize_state(config, self.settings)
        previous = self.state
        self._activate(state)
        logger.info(f"Reconfigured database to {self._target(database)}")
        if previous is not None:
            await previous.engine.dispose()
        return state

    async def close(self) -> None:
        if self.state is not None:
            await self.state.engine.dispose()
            logger.info("Database engine disposed")

    @staticmethod
    def _target(database: DatabaseConfig) -> str:
        try:
            return database.safe_target()
        except Exception:
            return "<incomplete database configuration>"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        app = self.current
        await app(scope, receive, send)
