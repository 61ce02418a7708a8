# shopcart/services/transaction_service.py
from typing import Any, Dict, List

from kombu.exceptions import OperationalError as BrokerError
from sqlalchemy.orm import Session

from shopcart.data.models.transaction import TransactionModel
from shopcart.domain.errors import ConcurrencyError, NotFoundError
from shopcart.repos.transaction_repo import TransactionRepo
from shopcart.services.cart_service import CartService
from shopcart.services.lock_service import LockService
from shopcart.services.notification_service import NotificationService
from shopcart.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class TransactionService:
    """
    Transaction ledger, kept separate from CartService.
    A transaction is only ever created by checking out a cart.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService | None = None,
        cart_service: CartService | None = None,
        notification_service: NotificationService | None = None,
    ):
        self.repo = TransactionRepo(db)
        self.lock_service = lock_service or LockService()
        self.cart_service = cart_service or CartService(db)
        self.notification_service = notification_service or NotificationService()

    @staticmethod
    def _to_dict(transaction: TransactionModel) -> Dict[str, Any]:
        return {
            "id": transaction.id,
            "cart_id": transaction.cart_id,
            "user_id": transaction.user_id,
            "total_price": transaction.total_price,
            "created_at": transaction.created_at,
        }

    def create_transaction(self, user_id: int, cart_id: int) -> Dict[str, Any]:
        """
        Use case: checkout.

        1. lock the cart in redis so a second checkout of it fails fast
        2. stock decrement + cart -> CHECKED_OUT (CartService.checkout_cart)
        3. append the transaction with the cart total as snapshot
        4. one commit for all of the above, rollback on any error
        5. notification (async, after commit)
        """
        locked = self.lock_service.acquire_checkout_lock(
            cart_id=cart_id,
            owner=str(user_id),
            ttl=CHECKOUT_LOCK_TTL_SECONDS,
        )
        if not locked:
            raise ConcurrencyError(f"Checkout of cart {cart_id} already in progress")

        try:
            cart = self.cart_service.checkout_cart(user_id, cart_id)

            transaction = self.repo.add_transaction(
                TransactionModel(
                    user_id=user_id,
                    cart_id=cart.id,
                    total_price=cart.total_amount,
                )
            )
            self.repo.commit()

        except Exception as e:
            logger.error(f"Checkout of cart {cart_id} failed, rolling back: {e}")
            self.repo.rollback()
            raise

        finally:
            self.lock_service.release_checkout_lock(cart_id=cart_id, owner=str(user_id))

        logger.info(
            f"Transaction {transaction.id} created from cart {cart_id}, "
            f"total {transaction.total_price}"
        )

        try:
            self.notification_service.send_transaction_notification(user_id, transaction.id)
        except BrokerError as e:
            # the checkout is committed, a lost notification must not undo it
            logger.warning(f"Could not queue notification for transaction {transaction.id}: {e}")

        return self._to_dict(transaction)

    def get_transaction(self, transaction_id: int, user_id: int, is_admin: bool = False) -> Dict[str, Any]:
        transaction = self.repo.get_transaction(transaction_id)

        if not transaction:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        if transaction.user_id != user_id and not is_admin:
            raise PermissionError("No access to this transaction")

        return self._to_dict(transaction)

    def list_transactions(self, user_id: int, is_admin: bool = False) -> List[Dict[str, Any]]:
        transactions = self.repo.list_transactions(None if is_admin else user_id)
        return [self._to_dict(t) for t in transactions]
