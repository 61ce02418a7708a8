# shopcart/api/routers/transactions.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcart.api.deps import DOMAIN_ERRORS, get_current_user, get_lock_service, http_error, is_admin
from shopcart.data.database import get_db
from shopcart.data.models.user import UserModel
from shopcart.domain.schemas import TransactionCreate, TransactionOut
from shopcart.services.lock_service import LockService
from shopcart.services.transaction_service import TransactionService

router = APIRouter(prefix="/transactions", tags=["transactions"])


def get_service(db: Session, lock_service: LockService | None = None):
    return TransactionService(db, lock_service=lock_service)


@router.post("/", response_model=TransactionOut, status_code=201)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Creates a transaction by checking out the given cart.
    """
    svc = get_service(db, lock_service)
    try:
        return svc.create_transaction(user.id, payload.cart_id)
    except DOMAIN_ERRORS as e:
        raise http_error(e)


@router.get("/", response_model=List[TransactionOut])
def list_transactions(
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    return svc.list_transactions(user.id, is_admin=is_admin(user))


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    svc = get_service(db)
    try:
        return svc.get_transaction(transaction_id, user.id, is_admin=is_admin(user))
    except DOMAIN_ERRORS as e:
        raise http_error(e)
