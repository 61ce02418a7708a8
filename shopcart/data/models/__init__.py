#import all models so SQLAlchemy registers them in Base.metadata

from shopcart.data.models.user import UserModel, UserRole
from shopcart.data.models.product import ProductModel
from shopcart.data.models.cart import CartModel, CartStatus
from shopcart.data.models.cart_item import CartItemModel
from shopcart.data.models.transaction import TransactionModel

__all__ = [
    "UserModel",
    "UserRole",
    "ProductModel",
    "CartModel",
    "CartStatus",
    "CartItemModel",
    "TransactionModel",
]
