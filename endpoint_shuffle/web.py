"""FastAPI presentation layer: landing page and random redirect."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)

from .errors import StoreError
from .infra import EndpointStore
from .logging_conf import component_logger

DEFAULT_TEMPLATE = Path(__file__).resolve().parent / "templates" / "index.html"


def create_app(store: EndpointStore, *, template_path: Path | None = None) -> FastAPI:
    """Build the web app around an injected endpoint store."""

    app = FastAPI(title="Endpoint Shuffle", docs_url=None, redoc_url=None)
    app.state.store = store
    app.state.template_path = template_path or DEFAULT_TEMPLATE
    logger = component_logger("web")

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request) -> Response:
        path: Path = request.app.state.template_path
        try:
            body = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("template_load_failed", template=str(path), error=str(exc))
            return PlainTextResponse("Failed to load template", status_code=500)
        return HTMLResponse(body)

    @app.get("/shuffle")
    def shuffle(request: Request) -> Response:
        try:
            url = request.app.state.store.pick_random()
        except StoreError as exc:
            logger.error("shuffle_failed", error=str(exc))
            url = None
        if url is None:
            logger.warning("shuffle_unavailable")
            return PlainTextResponse("Failed to fetch a random site", status_code=500)
        logger.info("shuffle_redirect", url=url)
        return RedirectResponse(url, status_code=303)

    @app.get("/healthz")
    def healthz(request: Request) -> Response:
        try:
            total = request.app.state.store.count()
        except StoreError:
            return PlainTextResponse("store unavailable", status_code=500)
        return JSONResponse({"status": "ok", "endpoints": total})

    return app


__all__ = ["DEFAULT_TEMPLATE", "create_app"]
