# storefront/api/routers/cart.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user_id, get_count_cache, unwrap
from storefront.data.database import get_db
from storefront.domain.schemas import (
    CartItemIn,
    CartItemQuantityIn,
    CartItemOut,
    CartSummaryOut,
    CartCountOut,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db=db, count_cache=get_count_cache())


@router.get("/", response_model=List[CartItemOut])
def get_cart(
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return unwrap(get_service(db).get_items(user_id))


@router.get("/summary", response_model=CartSummaryOut)
def get_cart_summary(
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return unwrap(get_service(db).get_summary(user_id))


@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return {"count": unwrap(get_service(db).get_count(user_id))}


@router.post("/items", response_model=CartItemOut, status_code=201)
def add_item(
    payload: CartItemIn,
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return unwrap(svc.add_item(user_id, payload.product_id, payload.quantity))


@router.patch("/items/{cart_item_id}", response_model=CartItemOut)
def update_item(
    cart_item_id: str,
    payload: CartItemQuantityIn,
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return unwrap(svc.update_item(user_id, cart_item_id, payload.quantity))


@router.delete("/items/{cart_item_id}", status_code=204)
def remove_item(
    cart_item_id: str,
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    unwrap(get_service(db).remove_item(user_id, cart_item_id))


@router.delete("/", status_code=204)
def clear_cart(
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    unwrap(get_service(db).clear(user_id))
