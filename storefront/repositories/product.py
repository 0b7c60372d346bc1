from typing import Dict, Iterable
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.product import Product


class ProductRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, product: Product) -> Product:
        self.session.add(product)
        await self.session.flush()
        await self.session.refresh(product)
        return product

    async def get_many(self, product_ids: Iterable[str], for_update: bool = False) -> Dict[str, Product]:
        stmt = select(Product).where(Product.id.in_(set(product_ids)))
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return {product.id: product for product in result.scalars().all()}

    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Take ``quantity`` units off a product's stock.

        The decrement only applies while enough stock is left, so it is safe
        against concurrent writers even without the row lock. Returns False
        when nothing was updated.
        """
        result = await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .where(Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1
