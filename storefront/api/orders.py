from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.repositories.order import OrderRepository
from storefront.repositories.product import ProductRepository
from storefront.services.order import OrderService
from storefront.schemas.order import PlaceOrderRequest, OrderResponse

router = APIRouter(prefix="/orders", tags=["orders"])


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db, ProductRepository(db), OrderRepository(db))


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    order_data: PlaceOrderRequest,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    return await service.place_order(order_data.customer_id, order_data.products)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    return await service.get_order(order_id)
