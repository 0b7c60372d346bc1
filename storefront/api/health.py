from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.cache import cache
from storefront.core.database import get_db
from storefront.core.exceptions import CacheFailure

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> dict[str, str | dict[str, str]]:
    health = {"status": "healthy", "checks": {}}

    try:
        await db.execute(text("SELECT 1"))
        health["checks"]["database"] = "healthy"
    except Exception as e:
        health["checks"]["database"] = f"unhealthy: {str(e)}"
        health["status"] = "unhealthy"

    # Analytics fall back to the database without the cache
    try:
        await cache.ping()
        health["checks"]["cache"] = "healthy"
    except CacheFailure as e:
        health["checks"]["cache"] = f"degraded: {e.message}"
        if health["status"] == "healthy":
            health["status"] = "degraded"

    return health
