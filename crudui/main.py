# crudui/main.py
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from crudui.api.dispatcher import AdminDispatcher
from crudui.core.config import Settings, get_settings, load_admin_config
from crudui.models.config import AdminConfig
from crudui.templates import STATIC_DIR

logger = logging.getLogger(__name__)


def create_app(config: Optional[AdminConfig] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Application with the static assets and the admin dispatcher mounted under the root path"""
    settings = settings or get_settings()
    config = config or load_admin_config(settings=settings)
    root_path = config.root_path

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None
    )
    dispatcher = AdminDispatcher(config, settings)
    app.state.dispatcher = dispatcher

    # Mount static files before the dispatcher so they are matched first
    app.mount(f"{root_path}/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.mount(root_path, dispatcher, name="admin")

    @app.on_event("startup")
    async def startup_event():
        """Connect to the database and build the table routes"""
        await dispatcher.initialize()

    @app.on_event("shutdown")
    async def shutdown_event():
        await dispatcher.close()

    return app


app = create_app()
