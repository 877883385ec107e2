# storefront/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import CategoryFilter, SortOption, ProductOut, ProductPageOut
from storefront.services.product_service import ProductService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, POPULAR_PRODUCTS_LIMIT

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session):
    return ProductService(db)


@router.get("/", response_model=ProductPageOut)
def list_products(
    category: CategoryFilter = Query("all"),
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    sort: SortOption = Query("latest"),
    db: Session = Depends(get_db),
):
    """
    Active products, filtered, sorted and paginated.
    Out-of-range page numbers are clamped, never rejected.
    """
    svc = get_service(db)
    return svc.list_with_pagination(category=category, page=page, limit=limit, sort_by=sort)


@router.get("/all", response_model=List[ProductOut])
def list_all_products(db: Session = Depends(get_db)):
    return get_service(db).list_active_products()


@router.get("/popular", response_model=List[ProductOut])
def popular_products(
    limit: int = Query(POPULAR_PRODUCTS_LIMIT),
    db: Session = Depends(get_db),
):
    return get_service(db).get_popular_products(limit=limit)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    product = get_service(db).get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="상품을 찾을 수 없습니다.")
    return product
