# shopcart/api/deps.py
import redis
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from shopcart.data.database import get_db
from shopcart.data.models.user import UserModel, UserRole
from shopcart.domain.errors import NotFoundError
from shopcart.repos.user_repo import UserRepo
from shopcart.services.lock_service import LockService
from shopcart.utils.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_lock_service() -> LockService:
    return LockService()


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> UserModel:
    """Resolves the user from the Bearer token or answers 401."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    subject = decode_access_token(token)
    if subject is None or not subject.isdigit():
        raise credentials_exception

    user = UserRepo(db).get_user(int(subject))
    if user is None:
        raise credentials_exception
    return user


def require_admin(current_user: UserModel = Depends(get_current_user)) -> UserModel:
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Insufficient privileges")
    return current_user


def is_admin(user: UserModel) -> bool:
    return user.role == UserRole.ADMIN.value


DOMAIN_ERRORS = (ValueError, PermissionError, RuntimeError, redis.RedisError)


def http_error(e: Exception) -> HTTPException:
    """Maps a service error onto the HTTP status the client should see."""
    if isinstance(e, redis.RedisError):
        return HTTPException(status_code=503, detail="Checkout lock is unavailable, try again later")
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, RuntimeError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
