import asyncio
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.exceptions import (
    EmptyOrderError,
    InsufficientStockError,
    InvalidProductError,
    NonPositiveQuantityError,
    OrderNotFoundError,
    QueryFailure,
    ServiceError,
    StorageFailure,
)
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.repositories.order import OrderRepository
from storefront.repositories.product import ProductRepository
from storefront.schemas.order import OrderProductInput, OrderResponse

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(
        self,
        session: AsyncSession,
        product_repository: ProductRepository,
        order_repository: OrderRepository,
        timeout: float | None = None
    ) -> None:
        self.session = session
        self.product_repository = product_repository
        self.order_repository = order_repository
        self.timeout = settings.order_timeout_seconds if timeout is None else timeout

    async def place_order(self, customer_id: str, items: Sequence[OrderProductInput]) -> OrderResponse:
        """Reserve stock for every line item and record a completed order.

        Stock decrements and the order insert are committed together or not at
        all. Validation errors are raised before any storage access; stock and
        product errors roll the transaction back before propagating.
        """
        self._validate_items(items)

        try:
            order = await asyncio.wait_for(self._place_order(customer_id, items), self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Order placement for customer {customer_id} timed out after {self.timeout}s")
            raise StorageFailure("place_order", f"timed out after {self.timeout}s", cause=e) from e

        logger.info(
            f"Order placed: {order.id} (customer: {customer_id}, "
            f"items: {len(order.items)}, total: {order.total_amount})"
        )
        return OrderResponse.model_validate(order)

    def _validate_items(self, items: Sequence[OrderProductInput]) -> None:
        if not items:
            raise EmptyOrderError("place_order", "Order must contain at least one product")

        for item in items:
            if item.quantity <= 0:
                raise NonPositiveQuantityError(
                    "place_order",
                    f"Quantity must be greater than 0 (product {item.product_id}, quantity {item.quantity})"
                )

    async def _place_order(self, customer_id: str, items: Sequence[OrderProductInput]) -> Order:
        try:
            products = await self.product_repository.get_many(
                (item.product_id for item in items),
                for_update=True
            )

            line_items: List[OrderItem] = []
            total_amount = Decimal("0")

            for position, item in enumerate(items):
                product = products.get(item.product_id)
                if product is None:
                    raise InvalidProductError("place_order", f"Invalid product ID: {item.product_id}")
                if product.stock < item.quantity:
                    raise InsufficientStockError(
                        "place_order",
                        f"Insufficient stock for product {product.id}: "
                        f"requested={item.quantity}, available={product.stock}"
                    )

                price_at_purchase = product.price
                total_amount += price_at_purchase * item.quantity
                line_items.append(OrderItem(
                    position=position,
                    product_id=product.id,
                    quantity=item.quantity,
                    price_at_purchase=price_at_purchase
                ))

                if not await self.product_repository.decrement_stock(product.id, item.quantity):
                    raise InsufficientStockError(
                        "place_order",
                        f"Insufficient stock for product {product.id}: stock changed concurrently"
                    )

            order = Order(
                id=str(uuid.uuid4()),
                customer_id=customer_id,
                items=line_items,
                total_amount=total_amount,
                order_date=datetime.now(timezone.utc),
                status=OrderStatus.COMPLETED.value
            )
            await self.order_repository.create(order)
            await self.session.commit()
            return order

        except ServiceError as e:
            await self._rollback()
            logger.warning(f"Order rejected for customer {customer_id}: {e}")
            raise
        except SQLAlchemyError as e:
            await self._rollback()
            logger.error(f"Order placement failed for customer {customer_id}: {e}", exc_info=True)
            raise StorageFailure("place_order", str(e), cause=e) from e
        except asyncio.CancelledError:
            await self._rollback()
            raise

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {e}", exc_info=True)
            raise StorageFailure("place_order", f"rollback failed: {e}", cause=e) from e

    async def get_order(self, order_id: str) -> OrderResponse:
        try:
            order = await self.order_repository.get_by_id(order_id)
        except SQLAlchemyError as e:
            raise QueryFailure("get_order", str(e), cause=e) from e

        if not order:
            raise OrderNotFoundError("get_order", f"Order {order_id} not found")

        return OrderResponse.model_validate(order)
