# shopcart/services/product_service.py
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from shopcart.data.models.product import ProductModel
from shopcart.domain.errors import InsufficientStockError, NotFoundError
from shopcart.domain.schemas import ProductCreate, ProductUpdate, StockUpdate
from shopcart.repos.product_repo import ProductRepo
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """
    Product catalogue and the stock ledger.
    Stock only goes down through update_stock_bulk, which is all-or-nothing.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    #query
    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def list_products(self) -> List[ProductModel]:
        return self.repo.list_products()

    #commands
    def create_product(self, payload: ProductCreate) -> ProductModel:
        product = ProductModel(
            name=payload.name,
            description=payload.description,
            price=payload.price,
            stock=payload.stock,
        )
        created = self.repo.create_product(product)
        logger.info(f"Created product {created.id} ({created.name}), stock {created.stock}")
        return created

    def update_product(self, product_id: int, payload: ProductUpdate) -> ProductModel:
        product = self.get_product(product_id)

        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field != "description":
                continue
            setattr(product, field, value)

        updated = self.repo.update_product(product)
        logger.info(f"Updated product {updated.id}")
        return updated

    def delete_product(self, product_id: int) -> None:
        product = self.get_product(product_id)
        self.repo.delete_product(product)
        logger.info(f"Deleted product {product_id}")

    @staticmethod
    def check_stock(product: ProductModel, quantity: int) -> None:
        if product.stock < quantity:
            raise InsufficientStockError(product.id, quantity, product.stock)

    def update_stock_bulk(self, updates: Iterable[StockUpdate]) -> List[ProductModel]:
        """
        Decrement stock for several products at once.

        Quantities for the same product are summed. Every product is checked
        before any row is touched, so a missing product or a short stock
        raises with nothing decremented. Only flushes: the caller commits
        (or rolls back) together with the rest of its unit of work.
        """
        requested: Dict[int, int] = defaultdict(int)
        for update in updates:
            if update.quantity <= 0:
                raise ValueError("Quantity must be greater than 0")
            requested[update.product_id] += update.quantity

        if not requested:
            return []

        products = self.repo.get_products_for_update(requested.keys())
        by_id = {p.id: p for p in products}

        for product_id in sorted(requested):
            product = by_id.get(product_id)
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            self.check_stock(product, requested[product_id])

        for product in products:
            product.stock -= requested[product.id]

        self.repo.flush()

        logger.info(
            "Stock decremented: "
            + ", ".join(f"{pid} -{qty}" for pid, qty in sorted(requested.items()))
        )
        return products

    @staticmethod
    def unit_price(product: ProductModel) -> Decimal:
        return Decimal(str(product.price))
