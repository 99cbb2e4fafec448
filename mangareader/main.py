import asyncio
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from mangareader.config import Settings
from mangareader.database import Base, build_engine, build_sessionmaker
from mangareader.limiter import limiter
from mangareader.logging_utils import log_requests, setup_logging

# Register every table on Base.metadata before create_all.
from mangareader.models import chapter_model, comment_model, manga_model, user_model  # noqa: F401
from mangareader.routes import comment_routes, manga_routes, tool_routes, user_routes

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def _first_error_message(errors) -> str:
    if not errors:
        return "Validation error"
    err = errors[0]
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")]
    msg = err.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail
        if exc.status_code == 404 and detail == "Not Found":
            detail = "Endpoint not found"
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _first_error_message(exc.errors())})

    # pydantic errors raised while building form models inside dependencies
    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"message": _first_error_message(exc.errors())})

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"message": "Too many requests. Please slow down."}
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "An unknown error occurred"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    app = FastAPI(title="Manga Reader API")
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.sessionmaker = build_sessionmaker(app.state.engine)

    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.middleware("http")(log_requests)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(user_routes.router, prefix=API_PREFIX)
    app.include_router(manga_routes.router, prefix=API_PREFIX)
    app.include_router(comment_routes.router, prefix=API_PREFIX)
    app.include_router(tool_routes.router, prefix=API_PREFIX)

    app.mount(
        settings.image_url_prefix,
        StaticFiles(directory=settings.image_path, check_dir=False),
        name="images",
    )

    @app.on_event("startup")
    async def on_startup():
        Path(settings.image_path).mkdir(parents=True, exist_ok=True)

        # Tiny retry so a momentary DB disconnect doesn't crash the app.
        for attempt in range(2):
            try:
                async with app.state.engine.begin() as conn:
                    if settings.db_schema:
                        await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{settings.db_schema}"'))
                    await conn.run_sync(Base.metadata.create_all)
                break
            except Exception as e:
                if attempt == 0:
                    logger.warning("DB init failed, retrying once: %r", e)
                    await asyncio.sleep(0.5)
                else:
                    logger.error("Skipping DB init due to error: %r", e)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.engine.dispose()

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.settings
    uvicorn.run("mangareader.main:app", host="0.0.0.0", port=settings.port)
