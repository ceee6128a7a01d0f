# catalog/db/models/__init__.py
from catalog.db.models.associations import product_categories
from catalog.db.models.category import Category
from catalog.db.models.product import Product
from catalog.db.models.user import User, UserRole
from catalog.db.models.auth_session import AuthSession
