# catalog/db/repositories/product_repository.py
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID
from sqlalchemy.orm import Session
from catalog.db.models.associations import product_categories
from catalog.db.models.product import Product
from catalog.schemas.product import ProductCreate

# Columns category product listings may sort on
SORTABLE_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
}


class ProductRepository:
    """Repository for CRUD operations on Product model"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def existing_ids(self, product_ids: Iterable[UUID]) -> Set[UUID]:
        """Return the subset of the given IDs that exist"""
        ids = list(product_ids)
        if not ids:
            return set()
        rows = self.db_session.query(Product.id).filter(Product.id.in_(ids)).all()
        return {row.id for row in rows}

    def create(self, product_data: ProductCreate) -> Product:
        """Create a new product"""
        db_product = Product(**product_data.model_dump())

        self.db_session.add(db_product)
        self.db_session.commit()
        self.db_session.refresh(db_product)

        return db_product

    def list_by_category(
        self,
        category_id: UUID,
        skip: int = 0,
        limit: int = 10,
        sort_by: str = "name",
        sort_order: str = "asc",
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock: Optional[bool] = None,
        featured: Optional[bool] = None,
    ) -> Tuple[List[Product], int]:
        """
        List active products attached to a category.

        Returns products and total count
        """
        query = (
            self.db_session.query(Product)
            .join(product_categories, product_categories.c.product_id == Product.id)
            .filter(product_categories.c.category_id == category_id)
            .filter(Product.is_active.is_(True))
        )

        # Apply filters
        if min_price is not None:
            query = query.filter(Product.price >= min_price)
        if max_price is not None:
            query = query.filter(Product.price <= max_price)
        if in_stock is not None:
            query = query.filter(Product.quantity > 0 if in_stock else Product.quantity == 0)
        if featured is not None:
            query = query.filter(Product.is_featured.is_(featured))

        total = query.count()

        column = SORTABLE_COLUMNS.get(sort_by, Product.name)
        query = query.order_by(column.desc() if sort_order == "desc" else column.asc())

        return query.offset(skip).limit(limit).all(), total
