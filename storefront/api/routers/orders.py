# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user_id, get_count_cache, unwrap
from storefront.data.database import get_db
from storefront.domain.schemas import OrderCreate, OrderCreatedOut, OrderOut
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db, count_cache=get_count_cache())


@router.post("/", response_model=OrderCreatedOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Places a pending order from the current cart.
    The client sends the total it displayed; a stale total is rejected.
    """
    svc = get_service(db)
    return unwrap(svc.create_order(user_id, payload))


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return unwrap(svc.get_order(user_id, order_id))
