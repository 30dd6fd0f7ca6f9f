"""
The local web UI server. Serves the JSON API and, when bundled, the static UI. Binds
only to the loopback address.
"""

from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    import uvicorn
    from fastapi import FastAPI

from pillar.config.logger import get_logger, log_dir
from pillar.config.settings import global_settings, update_global_settings
from pillar.errors import FileExists, FileFormatError, FileNotFound, InvalidInput, InvalidState
from pillar.file_storage.document_store import DocumentStore
from pillar.server import server_routes
from pillar.server.port_tools import find_available_local_port

log = get_logger(__name__)

UI_DIR = Path(__file__).parent / "ui"
"""Built web UI assets, if present."""

PORT_SEARCH_RANGE = 10

HOME_PAGE = """<!DOCTYPE html>
<html>
<head><title>Pillar</title></head>
<body>
<h1>Pillar</h1>
<p>The web UI is not bundled with this install. The JSON API is available at
<a href="/api/data">/api/data</a>.</p>
</body>
</html>
"""


def _server_config(app: "FastAPI", host: str, port: int) -> "uvicorn.Config":
    import uvicorn

    logs = log_dir()
    if not logs:
        return uvicorn.Config(app, host=host, port=port, log_level="warning")

    logs.mkdir(parents=True, exist_ok=True)
    return uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config={
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": {
                "default": {
                    "formatter": "default",
                    "class": "logging.FileHandler",
                    "filename": str(logs / f"server_{port}.log"),
                }
            },
            "loggers": {
                "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
                "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
                "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            },
        },
    )


def app_setup(store: DocumentStore, ui_dir: Optional[Path] = UI_DIR) -> "FastAPI":
    from fastapi import FastAPI, Request
    from fastapi.responses import HTMLResponse, JSONResponse
    from fastapi.staticfiles import StaticFiles

    app = FastAPI(title="Pillar")
    app.state.store = store

    app.include_router(server_routes.router)

    # Map common exceptions to HTTP codes. Handlers are matched on the exception's
    # MRO, so the subclasses of InvalidInput are registered explicitly.
    def error_response(status_code: int, message: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"message": message})

    @app.exception_handler(FileNotFound)
    @app.exception_handler(FileNotFoundError)
    async def file_not_found_exception_handler(request: Request, exc: Exception):
        return error_response(404, f"Not found: {exc}")

    @app.exception_handler(FileExists)
    @app.exception_handler(InvalidState)
    async def conflict_exception_handler(request: Request, exc: Exception):
        return error_response(409, str(exc))

    @app.exception_handler(InvalidInput)
    async def invalid_input_exception_handler(request: Request, exc: InvalidInput):
        return error_response(400, f"Invalid input: {exc}")

    @app.exception_handler(FileFormatError)
    async def file_format_exception_handler(request: Request, exc: FileFormatError):
        return error_response(422, f"Invalid document: {exc}")

    # Global exception handler.
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        log.error("Server error on %s: %s", request.url.path, exc, exc_info=True)
        return error_response(500, "Internal server error.")

    if ui_dir and (ui_dir / "index.html").is_file():
        app.mount("/", StaticFiles(directory=ui_dir, html=True), name="ui")
    else:

        @app.get("/", response_class=HTMLResponse)
        def home():
            return HOME_PAGE

    return app


def _pick_port(port: Optional[int]) -> int:
    """
    Pick an available port for the local server, starting at the requested or default
    port, and update the global settings.
    """
    settings = global_settings()
    start = port or settings.local_server_port
    port = find_available_local_port(
        settings.local_server_host, range(start, start + PORT_SEARCH_RANGE)
    )
    if port != start:
        log.warning("Port %s is in use, using %s instead.", start, port)

    with update_global_settings() as settings:
        settings.local_server_port = port

    return port


def run_server(store: DocumentStore, port: Optional[int] = None) -> None:
    """
    Run the server in the foreground until interrupted.
    """
    import uvicorn

    port = _pick_port(port)
    host = global_settings().local_server_host
    app = app_setup(store)
    server = uvicorn.Server(_server_config(app, host, port))

    log.message("Starting Pillar UI on http://%s:%s", host, port)
    if not (UI_DIR / "index.html").is_file():
        log.warning("No UI assets found, serving the JSON API only.")

    server.run()
