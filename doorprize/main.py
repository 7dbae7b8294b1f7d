from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from doorprize.config import Settings, get_settings
from doorprize.database import (
    Database,
    connect_with_retry,
    check_database_health,
    get_connection_info,
    sanitized_host,
)
from doorprize.middleware.timeout import add_timeout_middleware
from doorprize.services.exceptions import VoucherError
from doorprize.api import vouchers, live
import sys
import time
import asyncio
import logging

logger = logging.getLogger(__name__)


async def warm_up_database(app: FastAPI):
    """Background connectivity check so startup never blocks on the database"""
    settings: Settings = app.state.settings
    if settings.SKIP_DB_INIT:
        logger.info("Skipping database warm-up (SKIP_DB_INIT set)")
        return

    database: Database = app.state.database
    logger.info("Database warming up...")
    if await asyncio.to_thread(connect_with_retry, database.service_engine, max_retries=15, delay=3):
        logger.info("Database ready.")
    else:
        logger.critical("DATABASE UNREACHABLE: warm-up failed.")


def log_startup_summary(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("=" * 60)
    logger.info("Doorprize API starting with configuration:")
    logger.info(f"  - Database host: {sanitized_host(settings.DATABASE_URL)}")
    logger.info(f"  - Service role database: {'SEPARATE' if settings.DATABASE_SERVICE_URL else 'SAME AS READ'}")
    logger.info(f"  - API key authentication: {'ACTIVE' if settings.API_SECRET_KEY else 'INACTIVE'}")
    logger.info(f"  - Request timeout: {settings.REQUEST_TIMEOUT_SECONDS}s")
    if settings.uses_default_api_key:
        logger.warning("API_SECRET_KEY is not set; the placeholder key is in use. Set it before going live.")
    logger.info("Registered routes:")
    for route in app.routes:
        if hasattr(route, "path") and hasattr(route, "methods"):
            logger.info(f"  {sorted(route.methods)} {route.path}")
    logger.info("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_startup_summary(app)

    warm_up = asyncio.create_task(warm_up_database(app))

    yield

    warm_up.cancel()
    app.state.database.dispose()


def register_exception_handlers(app: FastAPI):
    """Every failure leaves the server as a JSON body with an `error` field"""

    @app.exception_handler(VoucherError)
    async def voucher_error_handler(request: Request, exc: VoucherError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = [
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request: " + "; ".join(problems)},
        )

    # Global Exception Handler so a single bad request cannot take the server down
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"GLOBAL ERROR: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": str(exc), "type": type(exc).__name__}
        )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title="Doorprize Voucher API",
        description="Issues and looks up doorprize lottery vouchers",
        version=settings.APP_VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)
    app.state.start_time = time.time()

    register_exception_handlers(app)
    add_timeout_middleware(app, settings.REQUEST_TIMEOUT_SECONDS)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Doorprize API is running!"

    @app.get("/api/health")
    def health_check(request: Request):
        """Diagnostic endpoint: configuration flags and database status"""
        database: Database = request.app.state.database
        uptime = time.time() - getattr(request.app.state, "start_time", time.time())

        return {
            "status": "online",
            "version": settings.APP_VERSION,
            "python": sys.version.split()[0],
            "uptime": int(uptime),
            "database": "connected" if check_database_health(database.read_engine) else "disconnected",
            "database_info": get_connection_info(database.read_engine),
            "environment": {
                "PORT": settings.PORT,
                "DATABASE_URL_CONFIGURED": not settings.uses_default_database_url,
                "HAS_SERVICE_DATABASE_URL": bool(settings.DATABASE_SERVICE_URL),
                "API_KEY_CONFIGURED": not settings.uses_default_api_key,
                "REQUEST_TIMEOUT_SECONDS": settings.REQUEST_TIMEOUT_SECONDS,
            },
        }

    app.include_router(vouchers.router)
    app.include_router(live.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.PORT)
