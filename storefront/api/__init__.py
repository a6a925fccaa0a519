# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.routers import carts, health, orders, users


def register_routers(app: FastAPI) -> FastAPI:
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    return app
