from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.user import ROLE_USER, UserModel
from storefront.domain.errors import NotFound
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """
    User glue: registration is idempotent on the user id.
    Admins only come from seed data, never from registration.
    """

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        try:
            user = self.repo.add_user(UserModel(id=payload.id, name=payload.name, role=ROLE_USER))
            self.repo.commit()
        except IntegrityError:
            # registered concurrently under the same id
            self.repo.rollback()
            user = self.get_user(payload.id)
        else:
            logger.info(f"Registered user {user.id} ({user.role})")
        return UserRead.model_validate(user)

    def get_user(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return user
