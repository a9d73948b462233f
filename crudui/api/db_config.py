# crudui/api/db_config.py
"""
Recovery application served while no database connection is available.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse

from crudui.models.config import DatabaseConfig
from crudui.services import view_renderer

logger = logging.getLogger(__name__)


def _defaults(database: DatabaseConfig) -> Dict[str, Any]:
    # The password is never echoed back into the form
    return {
        "host": database.host,
        "port": database.port,
        "user": database.user,
        "database": database.database
    }


def _port(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def build_db_config_app(dispatcher, error: Optional[str]) -> FastAPI:
    """Every GET shows the connection form; POST /db-config tries the submitted settings"""
    config = dispatcher.config
    base_path = config.root_path
    options = view_renderer.ui_options(config.ui, base_path)

    app = FastAPI(title=config.ui.title, docs_url=None, redoc_url=None, openapi_url=None)

    def form_page(message: Optional[str], defaults: Dict[str, Any],
                  status_code: int = status.HTTP_200_OK) -> HTMLResponse:
        return HTMLResponse(
            view_renderer.render_db_config_form(message, defaults, base_path, **options),
            status_code=status_code
        )

    @app.post("/db-config")
    async def submit_db_config(
            host: str = Form(""),
            port: str = Form(""),
            user: str = Form(""),
            password: str = Form(""),
            database: str = Form("")
    ):
        database_config = config.database.model_copy(update={
            "host": host.strip() or None,
            "port": _port(port),
            "user": user.strip() or None,
            "password": password or None,
            "database": database.strip() or None,
            "url": None
        })
        try:
            await dispatcher.reconfigure(database_config)
        except Exception as e:
            logger.warning(f"Database configuration rejected: {e}")
            return form_page(str(e), _defaults(database_config), status.HTTP_400_BAD_REQUEST)
        return RedirectResponse(url=f"{base_path}/", status_code=status.HTTP_303_SEE_OTHER)

    @app.api_route("/{path:path}", methods=["GET", "HEAD"], response_class=HTMLResponse)
    async def db_config_form(path: str):
        return form_page(error, _defaults(config.database))

    return app
