# tests/services/test_auth_service.py
import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from catalog.core.config import settings
from catalog.core.exceptions import ConflictError, NotFoundError
from catalog.db.models.auth_session import AuthSession
from catalog.db.models.user import User, UserRole
from catalog.schemas.user import UserCreate
from catalog.services.auth_service import hash_token


def test_create_user(auth_service):
    user = auth_service.create_user(UserCreate(email="Admin@Example.com", name="Admin", role=UserRole.ADMIN))

    assert user.email == "admin@example.com"
    assert user.role == UserRole.ADMIN
    assert user.is_active is True


def test_create_user_rejects_duplicate_email(auth_service):
    auth_service.create_user(UserCreate(email="shopper@example.com"))

    with pytest.raises(ConflictError):
        auth_service.create_user(UserCreate(email="SHOPPER@example.com"))


def test_issue_and_validate_token(auth_service, db_session):
    user = auth_service.create_user(UserCreate(email="editor@example.com", role=UserRole.EDITOR))

    issued = auth_service.issue_token(user.id)

    assert issued.token.startswith(settings.AUTH_TOKEN_PREFIX)
    assert issued.expires_at is not None

    # Only the hash is stored
    stored = db_session.query(AuthSession).filter(AuthSession.id == issued.session_id).one()
    assert stored.token_hash == hash_token(issued.token)
    assert stored.token_hash != issued.token

    resolved = auth_service.validate_token(issued.token)
    assert resolved.id == user.id
    assert resolved.role == UserRole.EDITOR

    db_session.refresh(stored)
    assert stored.last_used_at is not None


def test_issue_token_without_expiry(auth_service):
    user = auth_service.create_user(UserCreate(email="ops@example.com"))

    issued = auth_service.issue_token(user.id, expires_in_days=0)

    assert issued.expires_at is None
    assert auth_service.validate_token(issued.token) is not None


def test_issue_token_for_missing_user(auth_service):
    with pytest.raises(NotFoundError):
        auth_service.issue_token(uuid4())


def test_validate_unknown_token(auth_service):
    assert auth_service.validate_token("sfc_not-a-real-token") is None


def test_validate_expired_token(auth_service, db_session):
    user = auth_service.create_user(UserCreate(email="late@example.com"))
    issued = auth_service.issue_token(user.id)

    db_session.query(AuthSession).filter(AuthSession.id == issued.session_id).update(
        {"expires_at": datetime.now(timezone.utc) - timedelta(minutes=1)}
    )
    db_session.commit()

    assert auth_service.validate_token(issued.token) is None


def test_validate_token_of_inactive_user(auth_service, db_session):
    user = auth_service.create_user(UserCreate(email="gone@example.com"))
    issued = auth_service.issue_token(user.id)

    db_session.query(User).filter(User.id == user.id).update({"is_active": False})
    db_session.commit()

    assert auth_service.validate_token(issued.token) is None


def test_revoke_token(auth_service):
    user = auth_service.create_user(UserCreate(email="revoked@example.com"))
    issued = auth_service.issue_token(user.id)

    assert auth_service.revoke_token(issued.token) is True
    assert auth_service.validate_token(issued.token) is None
    assert auth_service.revoke_token("sfc_unknown") is False
