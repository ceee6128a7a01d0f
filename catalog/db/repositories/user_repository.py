# catalog/db/repositories/user_repository.py
from typing import Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session
from catalog.db.models.user import User
from catalog.schemas.user import UserCreate


class UserRepository:
    """Repository for CRUD operations on User model"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        return self.db_session.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)"""
        if not email:
            return None
        return self.db_session.query(User).filter(
            func.lower(User.email) == email.strip().lower()
        ).first()

    def create(self, user_data: UserCreate) -> User:
        """Create a new user"""
        user_dict = user_data.model_dump()
        user_dict["email"] = user_dict["email"].strip().lower()

        db_user = User(**user_dict)

        self.db_session.add(db_user)
        self.db_session.commit()
        self.db_session.refresh(db_user)

        return db_user
