# shopcart/repos/product_repo.py
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from shopcart.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self) -> List[ProductModel]:
        return list(self.db.execute(select(ProductModel).order_by(ProductModel.id)).scalars().all())

    def get_products_for_update(self, product_ids: Iterable[int]) -> List[ProductModel]:
        # id order keeps row locks consistent between concurrent checkouts
        return list(
            self.db.execute(
                select(ProductModel)
                .where(ProductModel.id.in_(list(product_ids)))
                .order_by(ProductModel.id)
                .with_for_update()
            ).scalars().all()
        )

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update_product(self, product: ProductModel) -> ProductModel:
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.commit()

    def flush(self) -> None:
        self.db.flush()
