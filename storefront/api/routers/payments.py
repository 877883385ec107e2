# storefront/api/routers/payments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user_id, unwrap
from storefront.data.database import get_db
from storefront.domain.schemas import PaymentRequestIn, PaymentRequestOut
from storefront.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(db: Session):
    return PaymentService(db)


@router.post("/request", response_model=PaymentRequestOut)
def request_payment(
    payload: PaymentRequestIn,
    user_id: str | None = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return unwrap(get_service(db).request_payment(user_id, payload.order_id))
