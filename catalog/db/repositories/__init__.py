from catalog.db.repositories.category_repository import CategoryRepository
from catalog.db.repositories.product_repository import ProductRepository
from catalog.db.repositories.user_repository import UserRepository

__all__ = [
    "CategoryRepository",
    "ProductRepository",
    "UserRepository",
]
