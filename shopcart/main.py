# shopcart/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from shopcart.api import register_routers
from shopcart.data.database import Base, engine
from shopcart.utils.logging import get_logger
from shopcart.utils.retry import db_retry

# import every model before create_all so Base.metadata knows the tables
import shopcart.data.models  # noqa: F401

logger = get_logger(__name__)


@db_retry()
def create_tables():
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    logger.info("Database tables ready")

    yield

    engine.dispose()
    logger.info("Database connections closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shop Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
