from contextlib import asynccontextmanager
from datetime import timedelta
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from . import config, db
from .exceptions import ProblemDetail
from .routers import table
from .services import SqlGameStateStore, TableRuntime
from .utils.sentry import init_sentry

logger = logging.getLogger(__name__)

init_sentry()


async def build_runtime() -> TableRuntime:
    """Create the table runtime described by the environment configuration."""

    store = None
    if config.DATABASE_URL:
        await db.init_db()
        store = SqlGameStateStore(db.get_session_factory())
    else:
        logger.info("DATABASE_URL not provided; running without persistence.")

    return await TableRuntime.create(
        store,
        table_id=config.TABLE_ID,
        ball_air_time=timedelta(seconds=config.BALL_AIR_TIME_SECONDS),
        tick_interval=config.TICK_INTERVAL_SECONDS,
        queue_size=config.PERSISTENCE_QUEUE_SIZE,
        flush_timeout=config.PERSISTENCE_FLUSH_TIMEOUT_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        runtime = await build_runtime()
        app.state.table = runtime.table
        runtime.start()
        try:
            yield
        finally:
            await runtime.stop()
    finally:
        await db.dispose_engine()


# -----------------------------------------------------------------------------
# FastAPI app
# -----------------------------------------------------------------------------
app = FastAPI(
    title="Ping Pong API",
    version="0.1.0",
    lifespan=lifespan,
)

if config.ALLOWED_ORIGINS:
    if "*" in config.ALLOWED_ORIGINS:
        raise ValueError(
            "ALLOWED_ORIGINS cannot include '*' (wildcard). Specify explicit, trusted origins."
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_methods=["GET"],
        allow_headers=["*"],
    )


# -----------------------------------------------------------------------------
# Health checks
# -----------------------------------------------------------------------------
@app.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# Error handling
# -----------------------------------------------------------------------------
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    problem = ProblemDetail(
        title=detail,
        detail=detail,
        status=exc.status_code,
        code=f"http_{exc.status_code}",
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    problem = ProblemDetail(
        title="Internal Server Error",
        status=500,
        detail=str(exc),
        code="internal_server_error",
    )
    return JSONResponse(
        status_code=500,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


app.include_router(table.router)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=config.SERVER_HOST, port=config.SERVER_PORT)
