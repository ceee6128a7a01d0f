"""Service for users and bearer session tokens."""
import secrets
import hashlib
from typing import Optional
from datetime import datetime, timedelta, timezone
from uuid import UUID
from sqlalchemy.orm import Session

from catalog.core.config import settings
from catalog.core.exceptions import ConflictError, NotFoundError
from catalog.core.logging import get_logger
from catalog.db.models.auth_session import AuthSession
from catalog.db.models.user import User
from catalog.db.repositories.user_repository import UserRepository
from catalog.schemas.user import UserCreate, UserInDB, AuthTokenResponse

logger = get_logger(__name__)


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Some backends hand timestamps back without tzinfo; they are stored as UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class AuthService:
    """Service for user accounts and session tokens."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    def create_user(self, user_data: UserCreate) -> UserInDB:
        """Create a user; emails are unique case-insensitively."""
        if self.user_repo.get_by_email(user_data.email):
            raise ConflictError("A user with this email already exists", details={"email": user_data.email})

        user = self.user_repo.create(user_data)
        logger.info(f"Created user {user.email} with role {user.role.value}")
        return UserInDB.model_validate(user)

    def get_user_by_email(self, email: str) -> Optional[UserInDB]:
        user = self.user_repo.get_by_email(email)
        if not user:
            return None
        return UserInDB.model_validate(user)

    def issue_token(self, user_id: UUID, expires_in_days: Optional[int] = None) -> AuthTokenResponse:
        """
        Issue a new session token for a user.

        Args:
            user_id: User UUID
            expires_in_days: Lifetime of the token, defaults to AUTH_TOKEN_TTL_DAYS;
                0 issues a token that never expires

        Returns:
            AuthTokenResponse with the raw token (only time it's visible)
        """
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", details={"id": str(user_id)})

        if expires_in_days is None:
            expires_in_days = settings.AUTH_TOKEN_TTL_DAYS
        expires_at = None
        if expires_in_days > 0:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)

        # Generate a secure random token and store only its hash
        raw_token = f"{settings.AUTH_TOKEN_PREFIX}{secrets.token_urlsafe(32)}"
        auth_session = AuthSession(
            user_id=user.id,
            token_hash=hash_token(raw_token),
            expires_at=expires_at,
            is_active=True,
        )

        self.db.add(auth_session)
        self.db.commit()
        self.db.refresh(auth_session)

        logger.info(f"Issued session {auth_session.id} for user {user.email}")

        return AuthTokenResponse(
            session_id=auth_session.id,
            user_id=user.id,
            token=raw_token,
            expires_at=expires_at,
        )

    def validate_token(self, raw_token: str) -> Optional[User]:
        """
        Resolve a raw bearer token to its user.

        Returns None when the token is unknown, revoked or expired, or when
        the user has been deactivated.
        """
        auth_session = self.db.query(AuthSession).filter(
            AuthSession.token_hash == hash_token(raw_token),
            AuthSession.is_active.is_(True)
        ).first()

        if not auth_session:
            return None

        now = datetime.now(timezone.utc)
        expires_at = _as_utc(auth_session.expires_at)
        if expires_at and expires_at < now:
            logger.warning(f"Session {auth_session.id} has expired")
            return None

        user = auth_session.user
        if not user or not user.is_active:
            return None

        # Update last used timestamp
        auth_session.last_used_at = now
        self.db.commit()

        return user

    def revoke_token(self, raw_token: str) -> bool:
        """Deactivate a session token without deleting it."""
        auth_session = self.db.query(AuthSession).filter(
            AuthSession.token_hash == hash_token(raw_token)
        ).first()
        if not auth_session:
            return False

        auth_session.is_active = False
        self.db.commit()

        logger.info(f"Revoked session {auth_session.id}")
        return True
