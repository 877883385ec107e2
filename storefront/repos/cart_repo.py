# storefront/repos/cart_repo.py
from typing import List

from sqlalchemy import select, func, update, delete
from sqlalchemy.orm import Session, contains_eager

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: str) -> List[CartItemModel]:
        # inner join: rows whose product no longer resolves are left out
        stmt = (
            select(CartItemModel)
            .join(CartItemModel.product)
            .options(contains_eager(CartItemModel.product))
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.created_at.desc(), CartItemModel.id.asc())
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def get_cart_item(self, cart_item_id: str) -> CartItemModel | None:
        return self.db.get(CartItemModel, cart_item_id)

    def get_cart_item_for_product(self, user_id: str, product_id: str) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.user_id == user_id,
            CartItemModel.product_id == product_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def merge_quantity(self, cart_item_id: str, product_id: str, delta: int) -> int:
        # single conditional statement: quantity + delta must stay within stock
        stock = (
            select(ProductModel.stock_quantity)
            .where(ProductModel.id == product_id)
            .scalar_subquery()
        )
        stmt = (
            update(CartItemModel)
            .where(
                CartItemModel.id == cart_item_id,
                CartItemModel.quantity + delta <= stock,
            )
            .values(quantity=CartItemModel.quantity + delta)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def set_quantity(self, cart_item_id: str, product_id: str, quantity: int) -> int:
        stock = (
            select(ProductModel.stock_quantity)
            .where(ProductModel.id == product_id)
            .scalar_subquery()
        )
        stmt = (
            update(CartItemModel)
            .where(CartItemModel.id == cart_item_id, stock >= quantity)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def delete_cart_item(self, cart_item_id: str, user_id: str) -> int:
        stmt = delete(CartItemModel).where(
            CartItemModel.id == cart_item_id,
            CartItemModel.user_id == user_id,
        )
        return self.db.execute(stmt).rowcount

    def clear_cart(self, user_id: str) -> int:
        stmt = delete(CartItemModel).where(CartItemModel.user_id == user_id)
        return self.db.execute(stmt).rowcount

    def count_cart_items(self, user_id: str) -> int:
        stmt = select(func.count(CartItemModel.id)).where(CartItemModel.user_id == user_id)
        return self.db.execute(stmt).scalar_one()

    def refresh(self, item: CartItemModel) -> CartItemModel:
        self.db.refresh(item)
        return item

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
