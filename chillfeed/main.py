import asyncio
import contextlib
import logging
import os
from collections.abc import AsyncIterator

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chillfeed.api.router import router as api_router
from chillfeed.api.schemas.response import error_response
from chillfeed.domain.errors import BackendUnavailable, Conflict, CorruptDocument
from chillfeed.domain.errors import ValidationError
from chillfeed.services.cleanup_sweeper import run_periodic_sweep
from chillfeed.services.providers import close_providers, get_cleanup_sweeper
from chillfeed.settings import BackendSettings, backend_kind, sweep_interval_seconds

load_dotenv()

logger = logging.getLogger("chillfeed")


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] (%(threadName)s) %(message)s"


def configure_logging(level_name: str | None = None) -> int:
    """配置 chillfeed 日志；可重复调用，只会挂一个 handler。返回生效的级别。"""

    if level_name is None:
        level_name = os.getenv("CHILLFEED_LOG_LEVEL", "INFO")
    level = logging.getLevelName(level_name.strip().upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    # 路由在线程池里执行，格式里带上线程名便于排查并发清理。
    handler = next(
        (h for h in logger.handlers if getattr(h, "_chillfeed", False)), None
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler._chillfeed = True
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    handler.setLevel(level)

    logger.propagate = False
    return level


@contextlib.asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    interval = sweep_interval_seconds()
    task: asyncio.Task | None = None
    if interval > 0:
        logger.info("Periodic cleanup every %.0f seconds", interval)
        task = asyncio.create_task(run_periodic_sweep(get_cleanup_sweeper, interval))
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        close_providers()


def create_app() -> FastAPI:
    configure_logging()
    if backend_kind() == "github" and BackendSettings.missing_env():
        logger.warning(
            "Missing %s env vars. API routes will fail until set.",
            " / ".join(BackendSettings.missing_env()),
        )

    app = FastAPI(title="ChillFeed", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        _: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_exception(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error_messages = []
        for err in exc.errors():
            loc = ".".join(str(item) for item in err.get("loc", []))
            msg = err.get("msg", "validation error")
            error_messages.append(f"{loc}: {msg}")
        message = "; ".join(error_messages) if error_messages else "validation error"
        logger.warning("Rejected request body: %s", message)
        return error_response(400, message)

    @app.exception_handler(ValidationError)
    async def handle_missing_fields(_: Request, exc: ValidationError) -> JSONResponse:
        logger.warning("Rejected request: %s", exc)
        return error_response(400, str(exc))

    @app.exception_handler(Conflict)
    async def handle_conflict(_: Request, exc: Conflict) -> JSONResponse:
        logger.warning("%s", exc)
        return error_response(409, str(exc))

    @app.exception_handler(BackendUnavailable)
    async def handle_backend_unavailable(
        _: Request, exc: BackendUnavailable
    ) -> JSONResponse:
        logger.error("Backend call failed: %s", exc, exc_info=exc)
        return error_response(502, str(exc))

    @app.exception_handler(CorruptDocument)
    async def handle_corrupt_document(_: Request, exc: CorruptDocument) -> JSONResponse:
        logger.error("Stored content is unreadable: %s", exc, exc_info=exc)
        return error_response(500, str(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(_: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error: %s", exc, exc_info=exc)
        return error_response(500, str(exc) or "internal server error")

    return app


app = create_app()
