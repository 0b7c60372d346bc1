from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.cache import cache
from storefront.core.database import get_db
from storefront.repositories.order import OrderRepository
from storefront.services.analytics import AnalyticsService
from storefront.schemas.analytics import CustomerSpending, SalesAnalytics, TopProduct
from storefront.schemas.order import OrderList

router = APIRouter(tags=["analytics"])


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(OrderRepository(db), cache)


@router.get("/customers/{customer_id}/spending", response_model=CustomerSpending)
async def customer_spending(
    customer_id: str,
    service: AnalyticsService = Depends(get_analytics_service)
) -> CustomerSpending:
    return await service.customer_spending(customer_id)


@router.get("/customers/{customer_id}/orders", response_model=OrderList)
async def customer_orders(
    customer_id: str,
    limit: int = Query(10),
    offset: int = Query(0),
    service: AnalyticsService = Depends(get_analytics_service)
) -> OrderList:
    return await service.customer_orders(customer_id, limit=limit, offset=offset)


@router.get("/products/top-selling", response_model=List[TopProduct])
async def top_selling_products(
    limit: int = Query(10),
    service: AnalyticsService = Depends(get_analytics_service)
) -> List[TopProduct]:
    return await service.top_selling_products(limit)


@router.get("/analytics/sales", response_model=SalesAnalytics)
async def sales_analytics(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    service: AnalyticsService = Depends(get_analytics_service)
) -> SalesAnalytics:
    return await service.sales_analytics(start_date, end_date)
