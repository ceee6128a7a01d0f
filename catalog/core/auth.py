"""Bearer session authentication and role checks."""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID
from fastapi import Request, Depends
from fastapi.security import HTTPBearer
from sqlalchemy.orm import Session

from catalog.core.exceptions import ForbiddenError, UnauthenticatedError
from catalog.core.logging import get_logger
from catalog.db.base import get_db_session
from catalog.db.models.user import ROLE_RANK, UserRole
from catalog.services.auth_service import AuthService

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthorizedContext:
    """Identity of the caller, handed to every protected handler."""
    user_id: UUID
    email: str
    role: UserRole

    def has_role(self, required: UserRole) -> bool:
        return ROLE_RANK[self.role] >= ROLE_RANK[required]


class SessionAuth(HTTPBearer):
    """Session token authentication using Bearer token scheme."""

    def __init__(self, required_role: Optional[UserRole] = None):
        """
        Initialize session authentication.

        Args:
            required_role: Lowest role allowed through (None accepts any signed-in user)
        """
        super().__init__(auto_error=False)
        self.required_role = required_role

    async def __call__(
        self,
        request: Request,
        db: Session = Depends(get_db_session)
    ) -> AuthorizedContext:
        """
        Validate the session token and check the caller's role.

        Raises:
            UnauthenticatedError: No token, or the token is invalid or expired
            ForbiddenError: The user's role is below the required role
        """
        credentials = await super().__call__(request)
        client_host = request.client.host if request.client else None

        if not credentials:
            raise UnauthenticatedError("Authentication required")

        user = AuthService(db).validate_token(credentials.credentials)
        if not user:
            logger.warning(f"Invalid session token attempted from {client_host}")
            raise UnauthenticatedError("Invalid or expired session")

        context = AuthorizedContext(user_id=user.id, email=user.email, role=user.role)

        if self.required_role and not context.has_role(self.required_role):
            logger.warning(
                f"User {context.email} ({context.role.value}) denied {request.method} {request.url.path}"
            )
            raise ForbiddenError(
                "Insufficient permissions",
                details={"required_role": self.required_role.value},
            )

        # Store the caller in request state for later use
        request.state.auth = context
        return context


# Pre-configured auth dependencies
require_admin = SessionAuth(required_role=UserRole.ADMIN)
