# catalog/db/repositories/category_repository.py
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import func, delete, select
from sqlalchemy.orm import Session
from catalog.db.models.associations import product_categories
from catalog.db.models.category import Category
from catalog.db.models.product import Product

# Columns list endpoints may sort on
SORTABLE_COLUMNS = {
    "name": Category.name,
    "order": Category.order,
    "created_at": Category.created_at,
    "updated_at": Category.updated_at,
}


class CategoryRepository:
    """Repository for CRUD operations on Category model"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_by_id(self, category_id: UUID) -> Optional[Category]:
        """Get category by ID"""
        return self.db_session.query(Category).filter(Category.id == category_id).first()

    def get_by_slug(self, slug: str) -> Optional[Category]:
        """Get category by slug"""
        return self.db_session.query(Category).filter(Category.slug == slug).first()

    def get_parent_link(self, category_id: UUID, for_update: bool = False) -> Optional[Tuple[UUID, Optional[UUID]]]:
        """
        Get (id, parent_id) for one category without loading the full row.

        With for_update the row is locked until the transaction ends, so a
        concurrent re-parent cannot change the chain being validated.
        """
        query = self.db_session.query(Category.id, Category.parent_id).filter(
            Category.id == category_id
        )
        if for_update:
            query = query.with_for_update()
        row = query.first()
        if row is None:
            return None
        return row.id, row.parent_id

    def list_children(
        self,
        parent_ids: Optional[List[UUID]],
        include_inactive: bool = False,
    ) -> List[Category]:
        """
        List the direct children of the given parents.

        parent_ids=None lists top-level categories. Results are ordered by
        order, then name.
        """
        query = self.db_session.query(Category)
        if parent_ids is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            if not parent_ids:
                return []
            query = query.filter(Category.parent_id.in_(parent_ids))
        if not include_inactive:
            query = query.filter(Category.is_active.is_(True))
        return query.order_by(Category.order.asc(), Category.name.asc()).all()

    def list(
        self,
        parent_id: Optional[UUID] = None,
        top_level_only: bool = False,
        include_inactive: bool = False,
        featured: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100,
        sort_by: str = "order",
        sort_order: str = "asc",
    ) -> Tuple[List[Category], int]:
        """List categories with filters, sorting and pagination. Returns rows and total count"""
        query = self.db_session.query(Category)

        if top_level_only:
            query = query.filter(Category.parent_id.is_(None))
        elif parent_id is not None:
            query = query.filter(Category.parent_id == parent_id)
        if not include_inactive:
            query = query.filter(Category.is_active.is_(True))
        if featured is not None:
            query = query.filter(Category.is_featured.is_(featured))

        total = query.order_by(None).count()

        column = SORTABLE_COLUMNS.get(sort_by, Category.order)
        primary = column.desc() if sort_order == "desc" else column.asc()
        query = query.order_by(primary, Category.name.asc())

        return query.offset(skip).limit(limit).all(), total

    def list_featured(self, limit: int) -> List[Category]:
        """List active featured categories"""
        return (
            self.db_session.query(Category)
            .filter(Category.is_active.is_(True), Category.is_featured.is_(True))
            .order_by(Category.order.asc(), Category.name.asc())
            .limit(limit)
            .all()
        )

    def product_counts(self, category_ids: Iterable[UUID], active_only: bool = False) -> Dict[UUID, int]:
        """Count attached products per category in one query"""
        ids = list(category_ids)
        if not ids:
            return {}
        query = self.db_session.query(
            product_categories.c.category_id, func.count(product_categories.c.product_id)
        ).filter(product_categories.c.category_id.in_(ids))
        if active_only:
            query = query.join(Product, Product.id == product_categories.c.product_id).filter(
                Product.is_active.is_(True)
            )
        rows = query.group_by(product_categories.c.category_id).all()
        return {category_id: count for category_id, count in rows}

    def child_counts(self, category_ids: Iterable[UUID], active_only: bool = False) -> Dict[UUID, int]:
        """Count direct children per category in one query"""
        ids = list(category_ids)
        if not ids:
            return {}
        query = self.db_session.query(Category.parent_id, func.count(Category.id)).filter(
            Category.parent_id.in_(ids)
        )
        if active_only:
            query = query.filter(Category.is_active.is_(True))
        rows = query.group_by(Category.parent_id).all()
        return {parent_id: count for parent_id, count in rows}

    def create(self, category_dict: dict) -> Category:
        """Create a new category from already validated values"""
        values = dict(category_dict)
        if "metadata" in values:
            values["metadata_"] = values.pop("metadata")

        db_category = Category(**values)

        # Add to session and commit
        self.db_session.add(db_category)
        self.db_session.commit()
        self.db_session.refresh(db_category)

        return db_category

    def update(self, db_category: Category, values: dict) -> Category:
        """Apply already validated values to a category and commit"""
        for key, value in values.items():
            if key == "metadata":
                key = "metadata_"
            setattr(db_category, key, value)

        self.db_session.commit()
        self.db_session.refresh(db_category)

        return db_category

    def delete(self, db_category: Category) -> None:
        """Hard-delete a category"""
        self.db_session.delete(db_category)
        self.db_session.commit()

    def attached_product_ids(self, category_id: UUID, product_ids: Iterable[UUID]) -> set:
        """Return which of the given products are already in the category"""
        ids = list(product_ids)
        if not ids:
            return set()
        rows = self.db_session.execute(
            select(product_categories.c.product_id).where(
                product_categories.c.category_id == category_id,
                product_categories.c.product_id.in_(ids),
            )
        ).all()
        return {row[0] for row in rows}

    def add_products(self, category_id: UUID, product_ids: Iterable[UUID]) -> None:
        """Insert membership rows; callers pass only products not yet attached"""
        rows = [{"category_id": category_id, "product_id": pid} for pid in product_ids]
        if rows:
            self.db_session.execute(product_categories.insert(), rows)
        self.db_session.commit()

    def remove_products(self, category_id: UUID, product_ids: Iterable[UUID]) -> None:
        """Delete membership rows for the given products"""
        ids = list(product_ids)
        if ids:
            self.db_session.execute(
                delete(product_categories).where(
                    product_categories.c.category_id == category_id,
                    product_categories.c.product_id.in_(ids),
                )
            )
        self.db_session.commit()
