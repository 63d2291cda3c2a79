from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.cors import CORSMiddleware

from credgate.core.config import app_logger, settings
from credgate.core.db import dispose_db
from credgate.core.dependencies import get_async_session
from credgate.core.exceptions.handlers import (
    app_exception_handler,
    authentication_exception_handler,
    database_exception_handler,
    exception_schema,
    upstream_exception_handler,
)
from credgate.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    UpstreamException,
)
from credgate.core.routers import auth_router
from credgate.core.services import (
    BrevoService,
    EmailManagerService,
    Renderer,
    drain_deliveries,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_logger.info("Starting application...")

    # Initialize template renderer
    app_logger.info("Initializing template renderer...")
    Renderer.initialize(settings.TEMPLATE_DIR)
    app_logger.info("Template renderer initialized successfully.")

    # Initialize Brevo Service
    app_logger.info("Initializing Brevo service...")
    await BrevoService.init(
        api_key=settings.BREVO_API_KEY,
        sender_email=settings.BREVO_SENDER_EMAIL,
        sender_name=settings.BREVO_SENDER_NAME,
    )
    app_logger.info("Brevo service initialized successfully.")

    EmailManagerService.init()
    app_logger.info(f"Store backend: {settings.STORE_BACKEND}")

    yield

    app_logger.info("Shutting down application...")

    await drain_deliveries()
    await BrevoService.aclose()
    await dispose_db()
    app_logger.info("Database connections closed.")


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    debug=settings.DEBUG,
    root_path=settings.ROOT_PATH,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    responses=exception_schema,
)

# Register exception handlers (more specific first)
app.add_exception_handler(AuthenticationException, authentication_exception_handler)
app.add_exception_handler(UpstreamException, upstream_exception_handler)
app.add_exception_handler(DatabaseException, database_exception_handler)
app.add_exception_handler(AppException, app_exception_handler)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/auth", tags=["Authentication"])


@app.get("/", include_in_schema=False)
async def root(request: Request):
    base_url = str(request.base_url).rstrip("/")
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "documentations": {
            "swagger": f"{base_url}/docs",
            "redoc": f"{base_url}/redoc",
        },
        "version": settings.APP_VERSION,
    }


@app.head("/health", include_in_schema=False)
@app.get("/health")
async def health_check(session: Annotated[AsyncSession, Depends(get_async_session)]):
    """
    Health check endpoint.

    Checks:
        - Database connectivity (skipped for the in-memory store backend)
    """
    health_status = {"status": "ok", "database": "ok"}

    if settings.STORE_BACKEND == "memory":
        health_status["database"] = "not used"
        return health_status

    try:
        result = await session.execute(text("SELECT 1"))
        if result.scalar() != 1:
            health_status["database"] = "unhealthy"
    except SQLAlchemyError as e:
        app_logger.error(f"Database health check failed: {e}")
        health_status["database"] = "unhealthy"

    if health_status["database"] != "ok":
        health_status["status"] = "degraded"
        raise AppException(
            "One or more health checks failed.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=health_status,
        )

    return health_status
