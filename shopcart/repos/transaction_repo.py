# shopcart/repos/transaction_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from shopcart.data.models.transaction import TransactionModel


class TransactionRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_transaction(self, transaction: TransactionModel) -> TransactionModel:
        # flush only, commits together with the checkout
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def get_transaction(self, transaction_id: int) -> TransactionModel | None:
        return self.db.get(TransactionModel, transaction_id)

    def list_transactions(self, user_id: int | None = None) -> List[TransactionModel]:
        stmt = select(TransactionModel).order_by(TransactionModel.id)
        if user_id is not None:
            stmt = stmt.where(TransactionModel.user_id == user_id)
        return list(self.db.execute(stmt).scalars().all())

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
