from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from shopcart.api.deps import get_current_user, is_admin
from shopcart.data.database import get_db
from shopcart.data.models.user import UserModel
from shopcart.domain.errors import NotFoundError
from shopcart.services.user_service import UserService
from shopcart.domain.schemas import UserCreate, UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


def _check_self_or_admin(user_id: int, current_user: UserModel):
    if current_user.id != user_id and not is_admin(current_user):
        raise HTTPException(status_code=403, detail="No access to this user")


@router.post("/", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.create_user(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=List[UserRead])
def list_users(db: Session = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    return UserService(db).list_users()


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    service = UserService(db)
    try:
        return service.get_user(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    _check_self_or_admin(user_id, current_user)
    if payload.role is not None and not is_admin(current_user):
        raise HTTPException(status_code=403, detail="Only admins can change roles")

    service = UserService(db)
    try:
        return service.update_user(user_id, payload)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: int, db: Session = Depends(get_db), current_user: UserModel = Depends(get_current_user)):
    _check_self_or_admin(user_id, current_user)

    service = UserService(db)
    try:
        service.delete_user(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
