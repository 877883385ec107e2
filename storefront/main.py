# storefront/main.py
from fastapi import FastAPI
from storefront.api import create_app as create_api
from storefront.data.database import Base, engine
from storefront.data.seed import seed
from storefront.utils.settings import SEED_DEMO_DATA
from storefront.utils.logging import get_logger
import uvicorn

logger = get_logger(__name__)

# import all models before create_all
from storefront.data.models.product import ProductModel  # noqa: F401,E402
from storefront.data.models.cart_item import CartItemModel  # noqa: F401,E402
from storefront.data.models.order import OrderModel  # noqa: F401,E402
from storefront.data.models.order_item import OrderItemModel  # noqa: F401,E402


def init_db():
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")

    if SEED_DEMO_DATA:
        seed()


def create_app() -> FastAPI:
    init_db()
    return create_api()


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
