# storefront/data/seed.py
from datetime import datetime, timezone, timedelta
from decimal import Decimal

from storefront.data.database import SessionLocal
from storefront.data.models.product import ProductModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    ("무선 블루투스 이어폰", "electronics", "89000", 50),
    ("기계식 키보드", "electronics", "129000", 20),
    ("코튼 오버핏 티셔츠", "clothing", "29000", 100),
    ("데님 재킷", "clothing", "79000", 15),
    ("클린 코드", "books", "33000", 30),
    ("유기농 그래놀라", "food", "12000", 80),
    ("요가 매트", "sports", "45000", 25),
    ("수분 크림", "beauty", "38000", 40),
    ("아로마 캔들", "home", "19000", 0),
]


def seed(session_factory=SessionLocal):
    db = session_factory()
    try:
        # only seed an empty catalog
        if db.query(ProductModel).first():
            return
        now = datetime.now(timezone.utc)
        for n, (name, category, price, stock) in enumerate(DEMO_PRODUCTS):
            db.add(
                ProductModel(
                    name=name,
                    category=category,
                    price=Decimal(price),
                    stock_quantity=stock,
                    is_active=True,
                    created_at=now - timedelta(days=n),
                    updated_at=now - timedelta(days=n),
                )
            )
        db.commit()
        logger.info(f"Seeded {len(DEMO_PRODUCTS)} demo products")
    finally:
        db.close()
