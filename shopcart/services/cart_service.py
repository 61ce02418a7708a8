from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Dict, Any, List
from sqlalchemy.orm import Session
from shopcart.data.models.cart import CartModel, CartStatus
from shopcart.data.models.cart_item import CartItemModel
from shopcart.domain.errors import CartStateError, ConcurrencyError, NotFoundError
from shopcart.domain.schemas import StockUpdate
from shopcart.repos.cart_repo import CartRepo
from shopcart.services.product_service import ProductService
from shopcart.utils.settings import CART_TTL_SECONDS
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases of the cart aggregate.
    commands (create, add, update, remove, delete, cancel, checkout) change state,
    queries (get, list) only read.

    Every command bumps cart.version with an optimistic UPDATE ... WHERE version = old
    and rewrites total_amount from the current lines, so the stored total
    never drifts from the sum of line totals.
    """

    def __init__(self, db: Session, product_service: ProductService | None = None):
        self.repo = CartRepo(db)
        self.product_service = product_service or ProductService(db)

    def _to_dict(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "price": i.price,
                    "line_total": i.line_total,
                }
                for i in items
            ],
            "total": Decimal(str(cart.total_amount)),
            "version": cart.version,
            "expires_at": cart.expires_at,
        }

    def _get_owned_cart(self, cart_id: int, user_id: int) -> CartModel:
        cart = self.repo.get_cart(cart_id)

        if not cart:
            raise NotFoundError(f"Cart {cart_id} not found")

        if cart.user_id != user_id:
            raise PermissionError("No access to this cart")

        return cart

    def _get_active_cart(self, cart_id: int, user_id: int) -> CartModel:
        cart = self._get_owned_cart(cart_id, user_id)

        if cart.status != CartStatus.ACTIVE.value:
            raise CartStateError(f"Cart {cart_id} is {cart.status} and cannot be modified")

        return cart

    def _recalculate_total(self, cart_id: int) -> Decimal:
        items = self.repo.get_cart_items(cart_id)
        return sum((Decimal(str(i.line_total)) for i in items), Decimal("0.00"))

    def _save(self, cart: CartModel, **new_data) -> None:
        old_version = cart.version
        new_data["version"] = old_version + 1
        new_data["total_amount"] = self._recalculate_total(cart.id)

        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data=new_data,
        )

        # e.g. UPDATE carts SET version = 2 WHERE id = 1 AND version = 1
        if rowcount == 0:
            raise ConcurrencyError(
                f"Cart {cart.id} was modified by another operation"
            )

    #query
    def get_cart(self, cart_id: int, user_id: int) -> Dict[str, Any] | None:
        cart = self.repo.get_cart(cart_id)

        if not cart:
            return None

        if cart.user_id != user_id:
            raise PermissionError("No access to this cart")

        return self._to_dict(cart)

    def list_carts(self, user_id: int) -> List[Dict[str, Any]]:
        return [self._to_dict(c) for c in self.repo.list_carts(user_id)]

    #commands
    def create_cart(self, user_id: int) -> Dict[str, Any]:
        existing = self.repo.get_active_cart_by_user(user_id)

        if existing:
            logger.info(f"User {user_id} already has active cart {existing.id}")
            return self._to_dict(existing)

        expires = datetime.now(timezone.utc) + timedelta(seconds=CART_TTL_SECONDS)

        new_cart = CartModel(
            user_id=user_id,
            status=CartStatus.ACTIVE.value,
            total_amount=Decimal("0.00"),
            version=1,
            expires_at=expires,
        )

        created = self.repo.create_cart(new_cart)

        logger.info(f"Created cart {created.id} for user {user_id}")

        return self._to_dict(created)

    def add_product(
        self,
        user_id: int,
        cart_id: int,
        product_id: int,
        quantity: int,
    ) -> Dict[str, Any]:

        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        cart = self._get_active_cart(cart_id, user_id)
        product = self.product_service.get_product(product_id)
        price = self.product_service.unit_price(product)

        try:
            existing_item = self.repo.get_cart_item(cart_id, product_id)
            new_quantity = quantity + (existing_item.quantity if existing_item else 0)

            # stock is checked against what the line will hold, not just the delta
            self.product_service.check_stock(product, new_quantity)

            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart_id}, quantity "
                    f"{existing_item.quantity} -> {new_quantity}"
                )
                existing_item.quantity = new_quantity
                existing_item.price = price
                existing_item.line_total = price * new_quantity
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Adding product {product_id} to cart {cart_id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart_id,
                        product_id=product_id,
                        quantity=quantity,
                        price=price,
                        line_total=price * quantity,
                    )
                )

            # every action pushes the expiry forward
            self._save(
                cart,
                expires_at=datetime.now(timezone.utc) + timedelta(seconds=CART_TTL_SECONDS),
            )
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to add product {product_id} to cart {cart_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} added to cart {cart_id}, version {cart.version}")

        return self.get_cart(cart_id, user_id)

    def update_item(
        self,
        user_id: int,
        cart_id: int,
        item_id: int,
        quantity: int,
    ) -> Dict[str, Any]:

        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        cart = self._get_active_cart(cart_id, user_id)

        item = self.repo.get_cart_item_by_id(item_id)
        if not item or item.cart_id != cart_id:
            raise NotFoundError(f"Item {item_id} not found in cart {cart_id}")

        product = self.product_service.get_product(item.product_id)
        price = self.product_service.unit_price(product)

        try:
            self.product_service.check_stock(product, quantity)

            item.quantity = quantity
            item.price = price
            item.line_total = price * quantity
            self.repo.add_cart_item(item)

            self._save(
                cart,
                expires_at=datetime.now(timezone.utc) + timedelta(seconds=CART_TTL_SECONDS),
            )
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to update item {item_id} in cart {cart_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Item {item_id} in cart {cart_id} set to quantity {quantity}")

        return self.get_cart(cart_id, user_id)

    def remove_item(self, user_id: int, cart_id: int, item_id: int) -> Dict[str, Any]:
        cart = self._get_active_cart(cart_id, user_id)

        item = self.repo.get_cart_item_by_id(item_id)
        if not item or item.cart_id != cart_id:
            raise NotFoundError(f"Item {item_id} not found in cart {cart_id}")

        logger.info(f"Removing item {item_id} (product {item.product_id}) from cart {cart_id}")

        try:
            self.repo.delete_cart_item(item)
            self._save(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self.get_cart(cart_id, user_id)

    def delete_cart(self, user_id: int, cart_id: int) -> None:
        cart = self._get_owned_cart(cart_id, user_id)

        self.repo.delete_cart(cart)
        self.repo.commit()

        logger.info(f"Deleted cart {cart_id}")

    def cancel_cart(self, user_id: int, cart_id: int) -> Dict[str, Any]:
        cart = self._get_active_cart(cart_id, user_id)

        try:
            self._save(cart, status=CartStatus.CANCELLED.value)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart {cart_id} cancelled")

        return self.get_cart(cart_id, user_id)

    def checkout_cart(self, user_id: int, cart_id: int) -> CartModel:
        """
        ACTIVE -> CHECKED_OUT.

        Decrements stock for every line and closes the cart, but does not
        commit: the caller appends the transaction record and commits the
        whole unit of work, or rolls everything back.
        """
        cart = self._get_active_cart(cart_id, user_id)

        items = self.repo.get_cart_items(cart_id)
        if not items:
            raise CartStateError("Cannot check out an empty cart")

        logger.info(f"Checking out cart {cart_id} with {len(items)} line(s)")

        self.product_service.update_stock_bulk(
            [StockUpdate(product_id=i.product_id, quantity=i.quantity) for i in items]
        )

        self._save(cart, status=CartStatus.CHECKED_OUT.value)

        return cart

    def expire_carts(self, now: datetime | None = None) -> int:
        """ACTIVE carts past expires_at become CANCELLED."""
        now = now or datetime.now(timezone.utc)
        carts = self.repo.get_expired_carts(now)

        for cart in carts:
            cart.status = CartStatus.CANCELLED.value
            cart.version = cart.version + 1

        self.repo.commit()

        logger.info(f"Expired {len(carts)} cart(s)")
        return len(carts)
