# orderahead/api/__init__.py
from fastapi import FastAPI

from orderahead.api.routers import businesses, health, live, orders, products, push


def include_routers(app: FastAPI) -> FastAPI:
    app.include_router(health.router)
    app.include_router(businesses.router)
    app.include_router(products.router)
    app.include_router(orders.router)
    app.include_router(push.router)
    app.include_router(live.router)
    return app
