from datetime import datetime
from typing import List
from pydantic import BaseModel


class CustomerSpending(BaseModel):
    customer_id: str
    total_spent: float
    average_order_value: float
    last_order_date: datetime | None = None


class TopProduct(BaseModel):
    product_id: str
    name: str
    total_sold: int


class CategoryRevenue(BaseModel):
    category: str | None
    revenue: float


class SalesAnalytics(BaseModel):
    total_revenue: float
    completed_orders: int
    category_breakdown: List[CategoryRevenue]
