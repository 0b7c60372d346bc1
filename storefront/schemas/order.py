from datetime import datetime
from typing import List
from pydantic import BaseModel


# Quantity and emptiness rules are enforced by OrderService.place_order
class OrderProductInput(BaseModel):
    product_id: str
    quantity: int


class PlaceOrderRequest(BaseModel):
    customer_id: str
    products: List[OrderProductInput]


class LineItem(BaseModel):
    product_id: str
    quantity: int
    price_at_purchase: float

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: str
    customer_id: str
    items: List[LineItem]
    total_amount: float
    order_date: datetime
    status: str

    model_config = {"from_attributes": True}


class OrderList(BaseModel):
    orders: List[OrderResponse]
    total_count: int
