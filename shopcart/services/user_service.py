from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from shopcart.data.models.user import UserModel, UserRole
from shopcart.repos.user_repo import UserRepo
from shopcart.domain.errors import DuplicateError, InvalidCredentialsError, NotFoundError
from shopcart.domain.schemas import LoginIn, UserCreate, UserRead, UserUpdate
from shopcart.utils.security import create_access_token, get_password_hash, verify_password
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def _get_or_raise(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_user(self, payload: UserCreate) -> UserRead:
        if self.repo.get_by_username(payload.username):
            raise DuplicateError(f"Username {payload.username} is already taken")

        user = UserModel(
            username=payload.username,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            role=UserRole.USER.value,
        )
        created = self.repo.create_user(user)
        logger.info(f"Created user {created.id} ({created.username})")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        return UserRead.model_validate(self._get_or_raise(user_id))

    def list_users(self) -> List[UserRead]:
        return [UserRead.model_validate(u) for u in self.repo.list_users()]

    def update_user(self, user_id: int, payload: UserUpdate) -> UserRead:
        user = self._get_or_raise(user_id)

        if payload.email is not None:
            user.email = payload.email
        if payload.role is not None:
            user.role = payload.role
        # keep the old hash when no new password was sent
        if payload.password:
            user.hashed_password = get_password_hash(payload.password)

        updated = self.repo.update_user(user)
        logger.info(f"Updated user {updated.id}")
        return UserRead.model_validate(updated)

    def delete_user(self, user_id: int) -> None:
        user = self._get_or_raise(user_id)
        try:
            self.repo.delete_user(user)
        except IntegrityError:
            self.repo.rollback()
            raise ValueError(f"User {user_id} still has carts or transactions")
        logger.info(f"Deleted user {user_id}")

    def login(self, payload: LoginIn) -> str:
        user = self.repo.get_by_username(payload.username)
        if not user or not verify_password(payload.password, user.hashed_password):
            logger.warning(f"Failed login for {payload.username}")
            raise InvalidCredentialsError("Invalid username or password")

        return create_access_token(subject=str(user.id))
