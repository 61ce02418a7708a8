# shopcart/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime


# =====================================================
# AUTH / USERS
# =====================================================
class LoginIn(BaseModel):
    """Schema for the login request."""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class TokenOut(BaseModel):
    """Schema for the issued access token."""

    access_token: str
    token_type: str = "bearer"


class UserCreate(BaseModel):
    """Schema for creating a user."""

    username: str = Field(..., min_length=3, max_length=50, description="Unique login name")
    password: str = Field(..., min_length=6, max_length=72)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


class UserUpdate(BaseModel):
    """Schema for updating a user; the password changes only when given."""

    email: str | None = Field(None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str | None = Field(None, min_length=6, max_length=72)
    role: Literal["User", "Admin"] | None = None


class UserRead(BaseModel):
    """Schema for a user (response)."""

    id: int
    username: str
    email: str
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# PRODUCTS
# =====================================================
class ProductCreate(BaseModel):
    """Schema for creating a product."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0, description="Units on hand (must be >= 0)")


class ProductUpdate(BaseModel):
    """Schema for a partial product update."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: int | None = Field(None, ge=0)


class ProductOut(BaseModel):
    """Schema for a product (response)."""

    id: int
    name: str
    description: str | None = None
    price: Decimal
    stock: int

    model_config = ConfigDict(from_attributes=True)


class StockUpdate(BaseModel):
    """One line of a bulk stock decrement."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


# =====================================================
# CARTS
# =====================================================
class ItemIn(BaseModel):
    """Schema for adding a product to a cart."""

    product_id: int = Field(..., gt=0, description="Product ID (must be > 0)")
    quantity: int = Field(..., gt=0, description="Quantity (must be > 0)")


class ItemUpdate(BaseModel):
    """Schema for changing the quantity of a cart line."""

    quantity: int = Field(..., gt=0, description="New quantity (must be > 0)")


class CartItemOut(BaseModel):
    """Schema for a cart line (response)."""

    id: int
    product_id: int
    quantity: int
    price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    """Schema for a cart (response)."""

    cart_id: int
    user_id: int
    status: str
    items: List[CartItemOut]
    total: Decimal
    version: int
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# TRANSACTIONS
# =====================================================
class TransactionCreate(BaseModel):
    """Schema for checking out a cart into a transaction."""

    cart_id: int = Field(..., gt=0, description="Cart ID (must be > 0)")


class TransactionOut(BaseModel):
    """Schema for a transaction (response)."""

    id: int
    cart_id: int
    user_id: int
    total_price: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
