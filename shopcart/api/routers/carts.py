#shopcart/api/routers/carts.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shopcart.api.deps import DOMAIN_ERRORS, get_current_user, get_lock_service, http_error
from shopcart.data.database import get_db
from shopcart.data.models.user import UserModel
from shopcart.domain.schemas import (
    ItemIn,
    ItemUpdate,
    CartOut,
    TransactionOut,
)
from shopcart.services.cart_service import CartService
from shopcart.services.lock_service import LockService
from shopcart.services.transaction_service import TransactionService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db=db)


@router.post("/", response_model=CartOut)
def create_cart(db: Session = Depends(get_db), user: UserModel = Depends(get_current_user)):
    svc = get_service(db)
    return svc.create_cart(user.id)


@router.get("/", response_model=List[CartOut])
def list_carts(db: Session = Depends(get_db), user: UserModel = Depends(get_current_user)):
    return get_service(db).list_carts(user.id)


@router.get("/{cart_id}", response_model=CartOut)
def get_cart(
    cart_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        cart = svc.get_cart(cart_id, user.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


@router.delete("/{cart_id}", status_code=204)
def delete_cart(
    cart_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        svc.delete_cart(user.id, cart_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.post("/{cart_id}/items", response_model=CartOut)
def add_item(
    cart_id: int,
    payload: ItemIn,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.add_product(
            user_id=user.id,
            cart_id=cart_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.put("/{cart_id}/items/{item_id}", response_model=CartOut)
def update_item(
    cart_id: int,
    item_id: int,
    payload: ItemUpdate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.update_item(user.id, cart_id, item_id, payload.quantity)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.delete("/{cart_id}/items/{item_id}", response_model=CartOut)
def remove_item(
    cart_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.remove_item(user.id, cart_id, item_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.post("/{cart_id}/cancel", response_model=CartOut)
def cancel_cart(
    cart_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.cancel_cart(user.id, cart_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.post("/{cart_id}/checkout", response_model=TransactionOut, status_code=201)
def checkout_cart(
    cart_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Checks the cart out: stock goes down, the cart closes and a transaction
    is recorded, all in one commit.
    """
    svc = TransactionService(db, lock_service=lock_service)
    try:
        return svc.create_transaction(user.id, cart_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)
