"""SQLAlchemy model for bearer session tokens."""
from uuid import uuid4
from sqlalchemy import Column, DateTime, Boolean, ForeignKey, String, Uuid, Index, true
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from catalog.db.base import Base


class AuthSession(Base):
    """Session token issued to a user. Only the sha256 of the token is stored."""

    __tablename__ = "auth_sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, server_default=true(), nullable=False, default=True)

    # Relationships
    user = relationship("User", back_populates="sessions")

    __table_args__ = (
        Index("ix_auth_sessions_user_id", "user_id"),
    )
