# tests/conftest.py
import pytest
import sys
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

# Load test environment variables
load_dotenv(".env.test", override=True)

# Add project root to Python path
project_root = Path(__file__).parent.parent.absolute()
sys.path.insert(0, str(project_root))

from catalog.db.base import Base
import catalog.db.models  # noqa: F401  (registers every table on Base.metadata)
from catalog.db.models.user import UserRole
from catalog.db.repositories.product_repository import ProductRepository
from catalog.schemas.category import CategoryCreate
from catalog.schemas.product import ProductCreate
from catalog.schemas.user import UserCreate
from catalog.services.auth_service import AuthService
from catalog.services.category_service import CategoryService

# Each test gets its own in-memory database
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with a fresh schema."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a test database session."""
    Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = Session()

    yield session

    session.close()


@pytest.fixture(scope="function")
def category_service(db_session):
    """Create a category service for testing."""
    return CategoryService(db_session)


@pytest.fixture(scope="function")
def auth_service(db_session):
    """Create an auth service for testing."""
    return AuthService(db_session)


@pytest.fixture(scope="function")
def make_category(category_service):
    """Factory creating categories through the service."""
    def _make(name, parent=None, **fields):
        data = CategoryCreate(name=name, parent_id=parent.id if parent else None, **fields)
        return category_service.create_category(data)

    return _make


@pytest.fixture(scope="function")
def make_product(db_session):
    """Factory creating products directly through the repository."""
    repo = ProductRepository(db_session)

    def _make(name, **fields):
        fields.setdefault("slug", name.lower().replace(" ", "-"))
        return repo.create(ProductCreate(name=name, **fields))

    return _make


@pytest.fixture(scope="function")
def make_token(auth_service):
    """Factory creating a user with the given role and returning a bearer token."""
    def _make(email, role=UserRole.USER, expires_in_days=None):
        user = auth_service.create_user(UserCreate(email=email, role=role))
        return auth_service.issue_token(user.id, expires_in_days=expires_in_days).token

    return _make
