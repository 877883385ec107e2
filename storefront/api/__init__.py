# storefront/api/__init__.py
from fastapi import FastAPI
from storefront.api.routers import health, products, cart, orders, payments


def create_app():
    app = FastAPI(title="Storefront", version="1.0.0")
    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    return app
