# crudui/api/routes.py
"""
Per-table CRUD routes.

build_admin_app() turns an AdminState into a FastAPI application with one
router per table; it is rebuilt whenever the state changes.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette.datastructures import FormData
from starlette.exceptions import HTTPException as StarletteHTTPException

from crudui.core.exceptions import (
    InvalidFieldError, MissingValueError, ReadOnlyTableError, RecordNotFoundError
)
from crudui.models.state import AdminState
from crudui.models.table import TableDescriptor
from crudui.services import query_codec, view_renderer
from crudui.services.csv_export import render_csv
from crudui.services.record_service import RecordService

logger = logging.getLogger(__name__)

RETURN_TO_VIEW = "__return_to_view"


async def _form_data(request: Request) -> Dict[str, Any]:
    """Submitted form fields as a plain dict, ignoring file uploads"""
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _inline_submission(form: FormData) -> Tuple[str, Optional[str]]:
    """
    Field name and value of an inline edit.

    Scripted posts send `field` and `value`. Without script the form posts the
    hidden `field` input followed by the control under the column's own name,
    so a column named "field" shows up as the second `field` entry.
    """
    fields = [v for v in form.getlist("field") if isinstance(v, str)]
    field = fields[0] if fields else ""
    if "value" in form:
        submitted = form.getlist("value")
    elif field == "field":
        submitted = fields[1:]
    else:
        submitted = form.getlist(field) if field else []
    submitted = [v for v in submitted if isinstance(v, str)]
    return field, submitted[-1] if submitted else None


class PageRenderer:
    """Binds the shared page options and turns errors into HTML error pages"""

    def __init__(self, state: AdminState):
        self.base_path = state.base_path
        self.options = view_renderer.ui_options(state.config.ui, self.base_path, state.visible_tables())

    def html(self, content: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
        return HTMLResponse(content, status_code=status_code)

    def error(self, message: str, status_code: int) -> HTMLResponse:
        return self.html(view_renderer.render_error(message, status_code, self.base_path, **self.options),
                         status_code)

    def failure(self, exc: Exception, action: str) -> HTMLResponse:
        """Error page for an exception raised while handling a request"""
        if isinstance(exc, RecordNotFoundError):
            logger.info(f"{action}: {exc}")
            return self.error(str(exc), status.HTTP_404_NOT_FOUND)
        if isinstance(exc, (InvalidFieldError, MissingValueError, ReadOnlyTableError)):
            logger.warning(f"{action}: {exc}")
            return self.error(str(exc), status.HTTP_400_BAD_REQUEST)
        logger.exception(f"Error {action}")
        return self.error(f"Error {action}: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def _list_routes(router: APIRouter, table: TableDescriptor, service: RecordService, pages: PageRenderer):
    @router.get("", response_class=HTMLResponse)
    async def list_records(request: Request):
        params = request.query_params
        state = query_codec.decode(params, table.columns, table)
        try:
            if params.get(query_codec.CSV_PARAM) == "1":
                rows = await service.fetch_all(state)
                return Response(
                    content=render_csv(table.columns, rows, state.visible_data_columns),
                    media_type="text/csv",
                    headers={"Content-Disposition": f'attachment; filename="{table.name}.csv"'}
                )

            rows, page_info = await service.fetch_page(state)
            return pages.html(view_renderer.render_table_page(
                table, rows, state, page_info, pages.base_path, **pages.options
            ))
        except Exception as e:
            return pages.failure(e, f"listing {table.name}")


def _record_routes(router: APIRouter, table: TableDescriptor, service: RecordService, pages: PageRenderer):
    base_path = pages.base_path
    table_url = query_codec.table_path(base_path, table.name)

    def form_page(row: Optional[Dict[str, Any]], mode: str, action: str) -> HTMLResponse:
        return pages.html(view_renderer.render_record_form(
            table, row, mode, action, base_path, **pages.options
        ))

    async def save(key: str, form: Dict[str, Any], return_to_view: bool):
        """Shared save for the edit form and the record view"""
        try:
            await service.update(key, form)
        except Exception as e:
            return pages.failure(e, f"updating {table.name} {key}")
        if return_to_view:
            return _redirect(view_renderer.record_url(base_path, table, "view", key))
        return _redirect(table_url)

    @router.get("/new", response_class=HTMLResponse)
    async def new_record():
        return form_page(None, view_renderer.MODE_NEW, view_renderer.record_url(base_path, table, "new"))

    @router.post("/new")
    async def create_record(request: Request):
        form = await _form_data(request)
        try:
            await service.create(form)
        except Exception as e:
            return pages.failure(e, f"creating {table.name} record")
        return _redirect(table_url)

    @router.get("/edit/{key:path}", response_class=HTMLResponse)
    async def edit_record(key: str):
        try:
            row = await service.get(key)
        except Exception as e:
            return pages.failure(e, f"loading {table.name} {key}")
        return form_page(row, view_renderer.MODE_EDIT, view_renderer.record_url(base_path, table, "edit", key))

    @router.post("/edit/{key:path}")
    async def update_record(key: str, request: Request):
        form = await _form_data(request)
        return_to_view = form.pop(RETURN_TO_VIEW, None) is not None
        return await save(key, form, return_to_view)

    @router.get("/view/{key:path}", response_class=HTMLResponse)
    async def view_record(key: str):
        try:
            row = await service.get(key)
        except Exception as e:
            return pages.failure(e, f"loading {table.name} {key}")
        return pages.html(view_renderer.render_record_view(table, row, key, base_path, **pages.options))

    @router.post("/view/{key:path}")
    async def update_from_view(key: str, request: Request):
        form = await _form_data(request)
        form.pop(RETURN_TO_VIEW, None)
        return await save(key, form, return_to_view=True)

    if table.duplicate:
        @router.get("/duplicate/{key:path}", response_class=HTMLResponse)
        async def duplicate_record(key: str):
            try:
                row = await service.get(key)
            except Exception as e:
                return pages.failure(e, f"loading {table.name} {key}")
            row.pop(table.primary_key.name, None)
            return form_page(row, view_renderer.MODE_DUPLICATE,
                             view_renderer.record_url(base_path, table, "new"))

    @router.post("/delete/{key:path}")
    async def delete_record(key: str):
        try:
            await service.delete(key)
        except Exception as e:
            return pages.failure(e, f"deleting {table.name} {key}")
        return _redirect(table_url)

    @router.post("/inline/{key:path}")
    async def inline_update(key: str, request: Request):
        field, value = _inline_submission(await request.form())
        try:
            if value is None:
                raise MissingValueError(table.name, field)
            await service.update_field(key, field, value)
        except Exception as e:
            return pages.failure(e, f"updating {table.name}.{field} for {key}")
        return _redirect(table_url)


def table_router(state: AdminState, table: TableDescriptor, pages: PageRenderer) -> APIRouter:
    """Routes of one table: the listing only for custom SQL tables, full CRUD otherwise"""
    router = APIRouter(prefix=f"/{table.name}", tags=[table.name])
    service = RecordService(state.engine, table)

    _list_routes(router, table, service, pages)
    if not table.read_only:
        _record_routes(router, table, service, pages)
    return router


def build_admin_app(state: AdminState) -> FastAPI:
    app = FastAPI(title=state.config.ui.title, docs_url=None, redoc_url=None, openapi_url=None)
    pages = PageRenderer(state)
    tables = state.visible_tables()

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return pages.error(message, exc.status_code)

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return pages.html(view_renderer.render_index(tables, pages.base_path, **pages.options))

    for table in tables:
        app.include_router(table_router(state, table, pages))

    logger.info(f"Registered routes for {len(tables)} tables under {pages.base_path or '/'}")
    return app
