# main.py
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from backend import Backend, BackendError, build_backend
from config import settings
from logging_setup import RequestIdMiddleware, setup_logging
from routes import api_router
from schemas.common import toast
from utils.csv_import import CsvImportError
from utils.errors import FieldError, Forbidden, ViewRedirect

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "form"


def _message(err: dict) -> str:
    # pydantic prefixes messages raised from validators
    return str(err.get("msg", "Invalid value")).removeprefix("Value error, ")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_name(err.get("loc", ())), "message": _message(err)}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=422, content={"errors": errors})

    @app.exception_handler(FieldError)
    async def _field(request: Request, exc: FieldError):
        return JSONResponse(status_code=422, content={"errors": [{"field": exc.field, "message": exc.message}]})

    @app.exception_handler(CsvImportError)
    async def _csv(request: Request, exc: CsvImportError):
        return JSONResponse(
            status_code=422,
            content={
                "errors": [{"field": "file", "message": m} for m in exc.errors],
                "toast": toast("CSV Parsing Error", str(exc), destructive=True),
            },
        )

    @app.exception_handler(ViewRedirect)
    async def _redirect(request: Request, exc: ViewRedirect):
        return RedirectResponse(url=exc.target, status_code=303)

    @app.exception_handler(Forbidden)
    async def _forbidden(request: Request, exc: Forbidden):
        return JSONResponse(status_code=403, content={"toast": toast("Forbidden", exc.message, destructive=True)})

    @app.exception_handler(BackendError)
    async def _backend(request: Request, exc: BackendError):
        logger.warning("backend_error_unhandled", code=exc.code, error=exc.message)
        return JSONResponse(
            status_code=404 if exc.not_found else 400,
            content={"toast": toast("Error", exc.message, destructive=True)},
        )

    @app.exception_handler(HTTPException)
    async def _http(request: Request, exc: HTTPException):
        # routers put toasts in `detail`; plain details keep FastAPI's shape
        if isinstance(exc.detail, dict) and "variant" in exc.detail:
            content = {"toast": exc.detail}
        else:
            content = {"detail": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


def create_app(backend: Optional[Backend] = None) -> FastAPI:
    setup_logging()
    app = FastAPI(title="PMApp - Project Management APIs", version=VERSION)
    app.state.backend = backend or build_backend()

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.on_event("startup")
    def _startup():
        provider = type(app.state.backend).__name__
        logger.info("startup", provider=provider, port=settings.PORT)
        app.state.backend.init()
        logger.info("startup_complete", provider=provider)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": VERSION, "provider": type(app.state.backend).__name__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT)
