from contextlib import contextmanager
from typing import Annotated
from fastapi import Depends
from sqlalchemy.orm import Session

from catalog.core.auth import AuthorizedContext, require_admin
from catalog.db.base import SessionLocal, get_db_session
from catalog.services.category_service import CategoryService


@contextmanager
def session_scope():
    """Create a database session with proper cleanup (CLI and scripts)"""
    db_session = SessionLocal()
    try:
        yield db_session
    except Exception:
        db_session.rollback()
        raise
    finally:
        db_session.close()


def get_category_service(db: Session = Depends(get_db_session)) -> CategoryService:
    """FastAPI dependency for the category service bound to the request session"""
    return CategoryService(db)


# Type aliases for dependency injection
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
AdminContext = Annotated[AuthorizedContext, Depends(require_admin)]
