from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.models.product import Product

UNKNOWN_PRODUCT_NAME = "Unknown Product"


class OrderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, order: Order) -> Order:
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self.session.execute(
            select(Order).where(Order.id == order_id)
        )
        return result.scalar_one_or_none()

    async def list_for_customer(self, customer_id: str, limit: int = 10, offset: int = 0) -> List[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.order_date.desc(), Order.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_customer(self, customer_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Order).where(Order.customer_id == customer_id)
        )
        return result.scalar_one()

    async def spending_for_customer(self, customer_id: str) -> Tuple[Decimal, int, Optional[datetime]]:
        """Return (total spent, order count, last order date) over completed orders."""
        result = await self.session.execute(
            select(
                func.coalesce(func.sum(Order.total_amount), 0),
                func.count(Order.id),
                func.max(Order.order_date),
            )
            .where(Order.customer_id == customer_id)
            .where(Order.status == OrderStatus.COMPLETED.value)
        )
        total_spent, order_count, last_order_date = result.one()
        return Decimal(str(total_spent)), order_count, last_order_date

    async def top_selling_products(self, limit: int = 10) -> List[Tuple[str, str, int]]:
        totals = (
            select(
                OrderItem.product_id.label("product_id"),
                func.sum(OrderItem.quantity).label("total_sold"),
            )
            .group_by(OrderItem.product_id)
            .order_by(func.sum(OrderItem.quantity).desc(), OrderItem.product_id)
            .limit(limit)
            .subquery()
        )

        result = await self.session.execute(
            select(
                totals.c.product_id,
                func.coalesce(Product.name, UNKNOWN_PRODUCT_NAME),
                totals.c.total_sold,
            )
            .select_from(totals.outerjoin(Product, Product.id == totals.c.product_id))
            .order_by(totals.c.total_sold.desc(), totals.c.product_id)
        )
        return [(row[0], row[1], int(row[2])) for row in result.all()]

    async def sales_totals(self, start: datetime, end: datetime) -> Tuple[Decimal, int]:
        """Return (revenue, order count) for completed orders placed within [start, end]."""
        result = await self.session.execute(
            select(
                func.coalesce(func.sum(Order.total_amount), 0),
                func.count(Order.id),
            )
            .where(Order.status == OrderStatus.COMPLETED.value)
            .where(Order.order_date >= start)
            .where(Order.order_date <= end)
        )
        total_revenue, completed_orders = result.one()
        return Decimal(str(total_revenue)), completed_orders

    async def category_breakdown(self, start: datetime, end: datetime) -> List[Tuple[Optional[str], Decimal]]:
        """Line-item revenue per product category for completed orders within [start, end].

        Items whose product is gone from the catalog are grouped under a None category.
        """
        revenue = func.sum(OrderItem.price_at_purchase * OrderItem.quantity).label("revenue")
        result = await self.session.execute(
            select(Product.category, revenue)
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .outerjoin(Product, Product.id == OrderItem.product_id)
            .where(Order.status == OrderStatus.COMPLETED.value)
            .where(Order.order_date >= start)
            .where(Order.order_date <= end)
            .group_by(Product.category)
            .order_by(revenue.desc(), Product.category)
        )
        return [(category, Decimal(str(amount))) for category, amount in result.all()]
