from sqlalchemy import Column, Integer, String

from storefront.data.database import Base

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
