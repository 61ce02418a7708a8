# shopcart/data/seed.py
from decimal import Decimal

from shopcart.data.database import Base, SessionLocal, engine
from shopcart.data.models import ProductModel, UserModel, UserRole
from shopcart.utils.logging import get_logger
from shopcart.utils.security import get_password_hash

logger = get_logger(__name__)

PRODUCTS = [
    {"name": "Keyboard", "description": "Mechanical, 87 keys", "price": Decimal("199.99"), "stock": 25},
    {"name": "Mouse", "description": "Wireless", "price": Decimal("49.50"), "stock": 100},
    {"name": "Monitor", "description": "27 inch IPS", "price": Decimal("899.00"), "stock": 10},
]


def seed(admin_password: str = "admin123"):
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            logger.info("Database already seeded")
            return

        db.add(
            UserModel(
                username="admin",
                email="admin@example.com",
                hashed_password=get_password_hash(admin_password),
                role=UserRole.ADMIN.value,
            )
        )
        for p in PRODUCTS:
            db.add(ProductModel(**p))
        db.commit()

        logger.info(f"Seeded admin user and {len(PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
