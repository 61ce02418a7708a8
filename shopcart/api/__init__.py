# shopcart/api/__init__.py
from fastapi import FastAPI
from shopcart.api.routers import auth, carts, health, products, transactions, users


def register_routers(app: FastAPI) -> FastAPI:
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(transactions.router)
    return app
