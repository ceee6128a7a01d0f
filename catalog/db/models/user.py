"""SQLAlchemy model for storefront users."""
import enum
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, Boolean, Enum, Uuid, true
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from catalog.db.base import Base


class UserRole(str, enum.Enum):
    USER = "USER"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"


# Higher rank includes every capability of the lower ones
ROLE_RANK = {
    UserRole.USER: 0,
    UserRole.EDITOR: 1,
    UserRole.ADMIN: 2,
}


class User(Base):
    """User account that owns auth sessions."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    role = Column(
        Enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER
    )
    is_active = Column(Boolean, server_default=true(), nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
