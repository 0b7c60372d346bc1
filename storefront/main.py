import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.core.logging import setup_logging
from storefront.core.cache import cache
from storefront.core.config import settings
from storefront.core.database import engine, Base
from storefront.core.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    StorageFailure,
    ValidationError,
)
import storefront.models.order  # noqa: F401
import storefront.models.product  # noqa: F401
from storefront.api.orders import router as orders_router
from storefront.api.analytics import router as analytics_router
from storefront.api.health import router as health_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await cache.connect()

    yield

    await cache.close()
    await engine.dispose()


app = FastAPI(
    title="Storefront Service",
    description="Order placement and sales analytics",
    version="0.1.0",
    lifespan=lifespan
)

cors_origins = settings.cors_origins.split(",") if settings.cors_origins else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS_CODES = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "operation": exc.operation}
    )


app.include_router(health_router)
app.include_router(orders_router)
app.include_router(analytics_router)
