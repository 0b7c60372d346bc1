import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.cache import RedisCache, compute_or_fetch
from storefront.core.config import settings
from storefront.core.exceptions import InvalidDateRangeError, InvalidPaginationError, QueryFailure
from storefront.repositories.order import OrderRepository
from storefront.schemas.analytics import CategoryRevenue, CustomerSpending, SalesAnalytics, TopProduct
from storefront.schemas.order import OrderList, OrderResponse

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sales_cache_key(start_date: datetime, end_date: datetime) -> str:
    return f"sales:{start_date.isoformat()}:{end_date.isoformat()}"


class AnalyticsService:
    def __init__(self, repository: OrderRepository, cache: RedisCache) -> None:
        self.repository = repository
        self.cache = cache

    async def customer_spending(self, customer_id: str) -> CustomerSpending:
        try:
            total_spent, order_count, last_order_date = await self.repository.spending_for_customer(customer_id)
        except SQLAlchemyError as e:
            raise QueryFailure("customer_spending", f"Failed to fetch customer spending: {e}", cause=e) from e

        average_order_value = total_spent / order_count if order_count else 0
        return CustomerSpending(
            customer_id=customer_id,
            total_spent=float(total_spent),
            average_order_value=float(average_order_value),
            last_order_date=last_order_date
        )

    async def top_selling_products(self, limit: int = 10) -> List[TopProduct]:
        if limit <= 0:
            raise InvalidPaginationError("top_selling_products", f"limit must be positive, got {limit}")

        try:
            rows = await self.repository.top_selling_products(limit)
        except SQLAlchemyError as e:
            raise QueryFailure("top_selling_products", f"Failed to fetch top selling products: {e}", cause=e) from e

        return [
            TopProduct(product_id=product_id, name=name, total_sold=total_sold)
            for product_id, name, total_sold in rows
        ]

    async def sales_analytics(self, start_date: datetime, end_date: datetime) -> SalesAnalytics:
        start = _as_utc(start_date)
        end = _as_utc(end_date)
        if start > end:
            raise InvalidDateRangeError(
                "sales_analytics",
                f"start_date {start.isoformat()} is after end_date {end.isoformat()}"
            )

        async def compute() -> SalesAnalytics:
            return await self._compute_sales_analytics(start, end)

        return await compute_or_fetch(
            self.cache,
            sales_cache_key(start, end),
            settings.sales_analytics_cache_ttl,
            compute,
            SalesAnalytics
        )

    async def _compute_sales_analytics(self, start: datetime, end: datetime) -> SalesAnalytics:
        try:
            total_revenue, completed_orders = await self.repository.sales_totals(start, end)
            breakdown = await self.repository.category_breakdown(start, end)
        except SQLAlchemyError as e:
            raise QueryFailure("sales_analytics", f"Failed to fetch sales analytics: {e}", cause=e) from e

        return SalesAnalytics(
            total_revenue=float(total_revenue),
            completed_orders=completed_orders,
            category_breakdown=[
                CategoryRevenue(category=category, revenue=float(revenue))
                for category, revenue in breakdown
            ]
        )

    async def customer_orders(self, customer_id: str, limit: int = 10, offset: int = 0) -> OrderList:
        if limit <= 0 or offset < 0:
            raise InvalidPaginationError(
                "customer_orders",
                f"limit must be positive and offset non-negative, got limit={limit}, offset={offset}"
            )

        try:
            orders = await self.repository.list_for_customer(customer_id, limit=limit, offset=offset)
            total_count = await self.repository.count_for_customer(customer_id)
        except SQLAlchemyError as e:
            raise QueryFailure("customer_orders", f"Failed to fetch customer orders: {e}", cause=e) from e

        return OrderList(
            orders=[OrderResponse.model_validate(order) for order in orders],
            total_count=total_count
        )
