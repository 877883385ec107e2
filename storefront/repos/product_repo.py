# storefront/repos/product_repo.py
from typing import Dict, Iterable, List

from sqlalchemy import select, func, update, or_
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.data.models.order_item import OrderItemModel

_SORTS = {
    "latest": (ProductModel.created_at.desc(), ProductModel.id.asc()),
    "price-asc": (ProductModel.price.asc(), ProductModel.created_at.desc(), ProductModel.id.asc()),
    "price-desc": (ProductModel.price.desc(), ProductModel.created_at.desc(), ProductModel.id.asc()),
}


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def _active(self, category: str | None = None):
        stmt = select(ProductModel).where(ProductModel.is_active.is_(True))
        if category == "uncategorized":
            stmt = stmt.where(
                or_(ProductModel.category.is_(None), ProductModel.category == "uncategorized")
            )
        elif category and category != "all":
            stmt = stmt.where(ProductModel.category == category)
        return stmt

    def list_active(self, limit: int | None = None, category: str | None = None) -> List[ProductModel]:
        stmt = self._active(category).order_by(*_SORTS["latest"])
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get_active(self, product_id: str) -> ProductModel | None:
        stmt = self._active().where(ProductModel.id == product_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def count_active(self, category: str | None = None) -> int:
        stmt = select(func.count()).select_from(self._active(category).subquery())
        return self.db.execute(stmt).scalar_one()

    def list_page(self, category: str | None, offset: int, limit: int, sort_by: str) -> List[ProductModel]:
        stmt = (
            self._active(category)
            .order_by(*_SORTS.get(sort_by, _SORTS["latest"]))
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_recent_excluding(
        self,
        exclude_ids: Iterable[str],
        limit: int,
        offset: int = 0,
        category: str | None = None,
    ) -> List[ProductModel]:
        stmt = self._active(category)
        exclude_ids = list(exclude_ids)
        if exclude_ids:
            stmt = stmt.where(ProductModel.id.not_in(exclude_ids))
        stmt = stmt.order_by(*_SORTS["latest"]).offset(offset).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get_active_by_ids(self, product_ids: Iterable[str], category: str | None = None) -> List[ProductModel]:
        product_ids = list(product_ids)
        if not product_ids:
            return []
        stmt = self._active(category).where(ProductModel.id.in_(product_ids))
        return list(self.db.execute(stmt).scalars().all())

    def aggregate_sales(self) -> Dict[str, int]:
        #full scan of order lines, no rollup table
        stmt = select(OrderItemModel.product_id, func.sum(OrderItemModel.quantity)).group_by(
            OrderItemModel.product_id
        )
        return {product_id: int(total or 0) for product_id, total in self.db.execute(stmt).all()}

    def decrement_stock(self, product_id: str, quantity: int) -> int:
        # UPDATE products SET stock = stock - q WHERE id = :id AND stock >= q
        stmt = (
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock_quantity >= quantity)
            .values(stock_quantity=ProductModel.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def rollback(self):
        self.db.rollback()
