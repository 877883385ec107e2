# storefront/services/product_service.py
import math
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel, CATEGORIES
from storefront.repos.product_repo import ProductRepo
from storefront.utils.money import to_price
from storefront.utils.settings import DEFAULT_PAGE_SIZE, POPULAR_PRODUCTS_LIMIT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_product(product: ProductModel) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": to_price(product.price, product.id),
        #anything off the category list, including "uncategorized", reads as no category
        "category": product.category if product.category in CATEGORIES else None,
        "stock_quantity": product.stock_quantity or 0,
        "is_active": product.is_active,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }


def rank_by_sales(products: List[ProductModel], sales: Dict[str, int]) -> List[ProductModel]:
    """
    Order products by aggregated sales, most sold first.

    Ties are broken by newer created_at, then by id, so identical input
    always yields the identical ranking.
    """
    ranked = sorted(products, key=lambda p: p.id)
    ranked.sort(key=lambda p: p.created_at, reverse=True)
    ranked.sort(key=lambda p: sales.get(p.id, 0), reverse=True)
    return ranked


class ProductService:
    """
    Read side of the catalog. Only active products are ever returned.

    The base active-product queries propagate storage errors; the sales
    aggregation and backfill steps of the popularity ranking degrade to a
    smaller or recency-based result instead.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    #queries
    def list_active_products(self) -> List[Dict[str, Any]]:
        return [serialize_product(p) for p in self.repo.list_active()]

    def get_product(self, product_id: str) -> Dict[str, Any] | None:
        #not found and inactive look the same to the caller
        product = self.repo.get_active(product_id)
        if not product:
            return None
        return serialize_product(product)

    def list_with_pagination(
        self,
        category: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        sort_by: str = "latest",
    ) -> Dict[str, Any]:
        page = max(1, int(page))
        limit = max(1, int(limit))

        total_count = self.repo.count_active(category)
        total_pages = max(1, math.ceil(total_count / limit))

        if page > total_pages:
            logger.info(f"Requested page {page} beyond last page {total_pages}, clamping")
            page = total_pages

        offset = (page - 1) * limit

        if sort_by == "popular":
            products = self._popular_page(category, offset, limit)
        else:
            products = [serialize_product(p) for p in self.repo.list_page(category, offset, limit, sort_by)]

        return {
            "products": products,
            "total_count": total_count,
            "current_page": page,
            "total_pages": total_pages,
        }

    def get_popular_products(self, limit: int = POPULAR_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
        limit = max(1, int(limit))

        ranked = self._ranked_by_sales()
        if not ranked:
            logger.info("No sales data, returning most recent products")
            return [serialize_product(p) for p in self.repo.list_active(limit=limit)]

        result = [serialize_product(p) for p in ranked[:limit]]

        if len(result) < limit:
            try:
                result += [
                    serialize_product(p)
                    for p in self.repo.list_recent_excluding(
                        exclude_ids=[p["id"] for p in result],
                        limit=limit - len(result),
                    )
                ]
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.warning(f"Backfill of popular products failed, returning {len(result)}: {e}")

        return result

    #helpers
    def _ranked_by_sales(self, category: str | None = None) -> List[ProductModel] | None:
        """
        Active products with sales, most sold first.

        None when the aggregation or the product fetch failed, empty list
        when nothing has sold yet. A failed step rolls the session back so
        the fallback query runs on a usable connection.
        """
        try:
            sales = self.repo.aggregate_sales()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.warning(f"Sales aggregation failed, falling back to recent products: {e}")
            return None

        sold = {pid: qty for pid, qty in sales.items() if qty > 0}
        if not sold:
            return []

        try:
            products = self.repo.get_active_by_ids(sold.keys(), category=category)
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.warning(f"Fetching ranked products failed, falling back to recent products: {e}")
            return None

        return rank_by_sales(products, sold)

    def _popular_page(self, category: str | None, offset: int, limit: int) -> List[Dict[str, Any]]:
        ranked = self._ranked_by_sales(category)
        if ranked is None:
            return [serialize_product(p) for p in self.repo.list_page(category, offset, limit, "latest")]

        page_items = [serialize_product(p) for p in ranked[offset:offset + limit]]
        if len(page_items) == limit:
            return page_items

        # pad with recent products that have no sales, continuing where the
        # ranked list ended so consecutive pages do not repeat
        ranked_ids = [p.id for p in ranked]
        pad_offset = max(0, offset - len(ranked))
        try:
            page_items += [
                serialize_product(p)
                for p in self.repo.list_recent_excluding(
                    exclude_ids=ranked_ids,
                    limit=limit - len(page_items),
                    offset=pad_offset,
                    category=category,
                )
            ]
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.warning(f"Padding popular page failed, returning {len(page_items)}: {e}")

        return page_items
