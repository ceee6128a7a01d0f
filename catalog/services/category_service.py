# catalog/services/category_service.py
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalog.core.config import settings
from catalog.core.exceptions import (
    CategoryCycleError,
    CategoryNotEmptyError,
    CategorySelfParentError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from catalog.core.logging import get_logger
from catalog.core.slug import slugify
from catalog.db.models.category import Category
from catalog.db.repositories.category_repository import CategoryRepository, SORTABLE_COLUMNS
from catalog.db.repositories.product_repository import ProductRepository
from catalog.schemas.category import (
    BreadcrumbItem,
    CategoryChildSummary,
    CategoryCreate,
    CategoryDetail,
    CategoryInDB,
    CategoryListResponse,
    CategoryRef,
    CategoryTreeNode,
    CategoryUpdate,
    CategoryWithCounts,
)
from catalog.schemas.common import Pagination
from catalog.schemas.product import ProductListResponse, ProductSummary

logger = get_logger(__name__)

# Products embedded in a category page looked up by slug
SLUG_PAGE_PRODUCT_LIMIT = 12
PRODUCT_PAGE_MAX_LIMIT = 100
NON_NULLABLE_FIELDS = ("name", "is_active", "is_featured", "order")


class CategoryService:
    """Service for category tree business logic"""

    def __init__(self, db_session: Session):
        self.db_session = db_session
        self.category_repo = CategoryRepository(db_session)
        self.product_repo = ProductRepository(db_session)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get_or_404(self, category_id: UUID) -> Category:
        category = self.category_repo.get_by_id(category_id)
        if not category:
            raise NotFoundError("Category not found", details={"id": str(category_id)})
        return category

    def _with_counts(
        self, categories: List[Category], active_products_only: bool = False
    ) -> List[CategoryWithCounts]:
        ids = [category.id for category in categories]
        product_counts = self.category_repo.product_counts(ids, active_only=active_products_only)
        child_counts = self.category_repo.child_counts(ids)

        summaries = []
        for category in categories:
            summary = CategoryWithCounts.model_validate(category)
            summary.product_count = product_counts.get(category.id, 0)
            summary.child_count = child_counts.get(category.id, 0)
            summaries.append(summary)
        return summaries

    def _children_summaries(
        self, category_id: UUID, include_inactive: bool
    ) -> List[CategoryChildSummary]:
        children = self.category_repo.list_children([category_id], include_inactive=include_inactive)
        return [
            CategoryChildSummary(
                id=child.id,
                name=child.name,
                slug=child.slug,
                image=child.image,
                product_count=summary.product_count,
                child_count=summary.child_count,
            )
            for child, summary in zip(children, self._with_counts(children))
        ]

    def get_category(
        self,
        category_id: UUID,
        include_parent: bool = True,
        include_children: bool = True,
    ) -> CategoryDetail:
        """Get category with parent summary, children summaries and counts"""
        category = self._get_or_404(category_id)
        summary = self._with_counts([category])[0]

        parent = None
        if include_parent and category.parent_id is not None:
            parent_row = self.category_repo.get_by_id(category.parent_id)
            if parent_row:
                parent = CategoryRef.model_validate(parent_row)

        children = None
        if include_children:
            children = self._children_summaries(category.id, include_inactive=True)

        return CategoryDetail(**summary.model_dump(), parent=parent, children=children)

    def get_by_slug(self, slug: str, include_products: bool = False) -> CategoryDetail:
        """Get category page data by slug: active children and, optionally, active products"""
        category = self.category_repo.get_by_slug(slug)
        if not category:
            raise NotFoundError("Category not found", details={"slug": slug})
        summary = self._with_counts([category])[0]

        parent = None
        if category.parent_id is not None:
            parent_row = self.category_repo.get_by_id(category.parent_id)
            if parent_row:
                parent = CategoryRef.model_validate(parent_row)

        products = None
        if include_products:
            rows, _ = self.product_repo.list_by_category(
                category.id, limit=SLUG_PAGE_PRODUCT_LIMIT, sort_by="name"
            )
            products = [ProductSummary.model_validate(row) for row in rows]

        return CategoryDetail(
            **summary.model_dump(),
            parent=parent,
            children=self._children_summaries(category.id, include_inactive=False),
            products=products,
        )

    def get_children(
        self, parent_id: Optional[UUID] = None, include_inactive: bool = False
    ) -> List[CategoryInDB]:
        """
        Get the direct children of a category, or the top-level categories
        when parent_id is None. Ordered by order, then name.
        """
        parent_ids = None if parent_id is None else [parent_id]
        children = self.category_repo.list_children(parent_ids, include_inactive=include_inactive)
        return [CategoryInDB.model_validate(child) for child in children]

    def get_ancestors(self, category_id: UUID) -> List[UUID]:
        """
        Get the IDs of all ancestors of a category, root first.

        The category itself is never part of the result. The walk stops at a
        top-level category, a dangling parent reference or an ID seen before,
        so it terminates even if stored data contains a loop.
        """
        link = self.category_repo.get_parent_link(category_id)
        if link is None:
            raise NotFoundError("Category not found", details={"id": str(category_id)})

        seen = {category_id}
        ancestors: List[UUID] = []
        current = link[1]
        while current is not None:
            if current in seen:
                logger.warning(f"Parent chain of category {category_id} loops back to {current}")
                break
            seen.add(current)
            parent_link = self.category_repo.get_parent_link(current)
            if parent_link is None:
                break
            ancestors.insert(0, current)
            current = parent_link[1]

        return ancestors

    def get_breadcrumbs(self, category_id: UUID) -> List[BreadcrumbItem]:
        """Get the breadcrumb trail of a category, root first and ending with the category itself"""
        category = self._get_or_404(category_id)

        breadcrumbs = [BreadcrumbItem.model_validate(category)]
        seen = {category.id}
        current = category.parent_id
        while current is not None and current not in seen:
            seen.add(current)
            parent = self.category_repo.get_by_id(current)
            if not parent:
                break
            breadcrumbs.insert(0, BreadcrumbItem.model_validate(parent))
            current = parent.parent_id

        return breadcrumbs

    def get_tree(
        self,
        parent_id: Optional[UUID] = None,
        include_inactive: bool = False,
        max_depth: Optional[int] = None,
    ) -> List[CategoryTreeNode]:
        """
        Build the nested category tree below parent_id (the whole forest when None).

        Levels are fetched breadth-first, one query per level, and the walk
        stops after max_depth levels. Nodes carry the number of active
        products and the number of (visible) children, so a node cut off by
        the depth limit still reports that it has children.
        """
        if max_depth is None:
            max_depth = settings.CATEGORY_TREE_MAX_DEPTH
        if max_depth < 1:
            raise ValidationError("max_depth must be at least 1", details={"max_depth": max_depth})

        if parent_id is not None:
            self._get_or_404(parent_id)
            frontier: Optional[List[UUID]] = [parent_id]
            seen = {parent_id}
        else:
            frontier = None
            seen = set()

        roots: List[CategoryTreeNode] = []
        nodes: Dict[UUID, CategoryTreeNode] = {}

        depth = 0
        while depth < max_depth:
            rows = [
                row
                for row in self.category_repo.list_children(frontier, include_inactive=include_inactive)
                if row.id not in seen
            ]
            if not rows:
                break

            ids = [row.id for row in rows]
            product_counts = self.category_repo.product_counts(ids, active_only=True)
            child_counts = self.category_repo.child_counts(ids, active_only=not include_inactive)

            for row in rows:
                seen.add(row.id)
                node = CategoryTreeNode(
                    id=row.id,
                    name=row.name,
                    slug=row.slug,
                    image=row.image,
                    parent_id=row.parent_id,
                    order=row.order,
                    is_active=row.is_active,
                    is_featured=row.is_featured,
                    depth=depth,
                    product_count=product_counts.get(row.id, 0),
                    child_count=child_counts.get(row.id, 0),
                )
                nodes[row.id] = node
                if depth == 0:
                    roots.append(node)
                else:
                    nodes[row.parent_id].children.append(node)

            frontier = ids
            depth += 1

        return roots

    def list_categories(
        self,
        parent_id: Optional[UUID] = None,
        top_level_only: bool = False,
        include_inactive: bool = False,
        featured: Optional[bool] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: str = "order",
        sort_order: str = "asc",
    ) -> CategoryListResponse:
        """List categories with filters, sorting and pagination"""
        if limit is None:
            limit = settings.CATEGORY_PAGE_SIZE
        if page < 1:
            raise ValidationError("Page must be a positive integer", details={"page": page})
        if limit < 1 or limit > settings.CATEGORY_MAX_PAGE_SIZE:
            raise ValidationError(
                f"Limit must be between 1 and {settings.CATEGORY_MAX_PAGE_SIZE}",
                details={"limit": limit},
            )
        if sort_by not in SORTABLE_COLUMNS:
            raise ValidationError(
                f"sort_by must be one of {sorted(SORTABLE_COLUMNS)}", details={"sort_by": sort_by}
            )

        categories, total = self.category_repo.list(
            parent_id=parent_id,
            top_level_only=top_level_only,
            include_inactive=include_inactive,
            featured=featured,
            skip=(page - 1) * limit,
            limit=limit,
            sort_by=sort_by,
            sort_order="desc" if sort_order == "desc" else "asc",
        )
        return CategoryListResponse(
            categories=self._with_counts(categories),
            pagination=Pagination.build(total, page, limit),
        )

    def get_featured(self, limit: Optional[int] = None) -> List[CategoryWithCounts]:
        """Get active featured categories with active product counts"""
        if limit is None:
            limit = settings.FEATURED_CATEGORIES_LIMIT
        categories = self.category_repo.list_featured(limit)
        return self._with_counts(categories, active_products_only=True)

    def list_products(
        self,
        category_id: UUID,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "name",
        sort_order: str = "asc",
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock: Optional[bool] = None,
        featured: Optional[bool] = None,
    ) -> ProductListResponse:
        """List the active products of a category with filters and pagination"""
        if page < 1:
            raise ValidationError("Page must be a positive integer", details={"page": page})
        if limit < 1 or limit > PRODUCT_PAGE_MAX_LIMIT:
            raise ValidationError(
                f"Limit must be between 1 and {PRODUCT_PAGE_MAX_LIMIT}", details={"limit": limit}
            )
        self._get_or_404(category_id)

        products, total = self.product_repo.list_by_category(
            category_id,
            skip=(page - 1) * limit,
            limit=limit,
            sort_by=sort_by,
            sort_order="desc" if sort_order == "desc" else "asc",
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            featured=featured,
        )
        return ProductListResponse(
            products=[ProductSummary.model_validate(product) for product in products],
            pagination=Pagination.build(total, page, limit),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _slug_for(self, name: str) -> str:
        slug = slugify(name)
        if not slug:
            raise ValidationError(
                "Name must contain at least one letter or digit", details={"name": name}
            )
        return slug

    def _check_new_parent(self, category_id: UUID, new_parent_id: UUID) -> None:
        """
        Reject a re-parent that would break the tree.

        Walks parent pointers upward from the proposed parent. Meeting the
        category itself means the proposed parent is one of its descendants.
        Meeting any other ID twice means the stored chain already loops, which
        is rejected as well. Rows on the chain are locked for the rest of the
        transaction.
        """
        if new_parent_id == category_id:
            raise CategorySelfParentError(
                "A category cannot be its own parent", details={"parent_id": str(new_parent_id)}
            )

        seen = set()
        current: Optional[UUID] = new_parent_id
        while current is not None:
            if current == category_id:
                raise CategoryCycleError(
                    "Cannot set category as a child of its own descendant",
                    details={"parent_id": str(new_parent_id)},
                )
            if current in seen:
                raise CategoryCycleError(
                    "Parent chain of the new parent contains a cycle",
                    details={"parent_id": str(new_parent_id), "loop_at": str(current)},
                )
            seen.add(current)

            link = self.category_repo.get_parent_link(current, for_update=True)
            if link is None:
                if current == new_parent_id:
                    raise ValidationError(
                        "Parent category not found", details={"parent_id": str(new_parent_id)}
                    )
                break
            current = link[1]

    def _commit_conflict(self, slug: Optional[str]) -> ConflictError:
        self.db_session.rollback()
        return ConflictError("A category with this name already exists", details={"slug": slug})

    def create_category(self, category_data: CategoryCreate) -> CategoryDetail:
        """Create a new category. Nothing is written unless every check passes"""
        name = (category_data.name or "").strip()
        if not name:
            raise ValidationError("Name is required")
        slug = self._slug_for(name)

        if self.category_repo.get_by_slug(slug):
            logger.warning(f"Rejected category create, slug '{slug}' already exists")
            raise ConflictError("A category with this name already exists", details={"slug": slug})

        if category_data.parent_id is not None:
            if self.category_repo.get_parent_link(category_data.parent_id) is None:
                raise NotFoundError(
                    "Parent category not found",
                    details={"parent_id": str(category_data.parent_id)},
                )

        values = category_data.model_dump()
        values["name"] = name
        values["slug"] = slug

        try:
            category = self.category_repo.create(values)
        except IntegrityError:
            raise self._commit_conflict(slug)

        logger.info(f"Created category '{category.name}' ({category.id}), slug '{category.slug}'")
        return self.get_category(category.id)

    def update_category(self, category_id: UUID, category_data: CategoryUpdate) -> CategoryDetail:
        """
        Apply a partial update.

        A new name regenerates the slug. A non-null parent_id goes through the
        self-parent and cycle checks; an explicit null moves the category to
        the top level.
        """
        category = self._get_or_404(category_id)
        values = category_data.model_dump(exclude_unset=True)

        for field in NON_NULLABLE_FIELDS:
            if field in values and values[field] is None:
                raise ValidationError(f"{field} cannot be null", details={"field": field})

        if "name" in values:
            values["name"] = values["name"].strip()
            slug = self._slug_for(values["name"])
            existing = self.category_repo.get_by_slug(slug)
            if existing and existing.id != category.id:
                logger.warning(f"Rejected category update {category_id}, slug '{slug}' already exists")
                raise ConflictError("A category with this name already exists", details={"slug": slug})
            values["slug"] = slug

        new_parent_id = values.get("parent_id")
        if new_parent_id is not None:
            try:
                self._check_new_parent(category.id, new_parent_id)
            except ValidationError as e:
                self.db_session.rollback()
                logger.warning(f"Rejected re-parent of category {category_id} under {new_parent_id}: {e.message}")
                raise

        try:
            category = self.category_repo.update(category, values)
        except IntegrityError:
            raise self._commit_conflict(values.get("slug"))

        logger.info(f"Updated category {category.id}: {sorted(values)}")
        return self.get_category(category.id)

    def delete_category(self, category_id: UUID) -> None:
        """Hard-delete a category that has neither products nor children"""
        category = self._get_or_404(category_id)

        product_count = self.category_repo.product_counts([category.id]).get(category.id, 0)
        if product_count > 0:
            logger.warning(f"Rejected delete of category {category_id}: {product_count} products")
            raise CategoryNotEmptyError(
                "Cannot delete category with products",
                code="CATEGORY_HAS_PRODUCTS",
                details={"product_count": product_count},
            )

        child_count = self.category_repo.child_counts([category.id]).get(category.id, 0)
        if child_count > 0:
            logger.warning(f"Rejected delete of category {category_id}: {child_count} subcategories")
            raise CategoryNotEmptyError(
                "Cannot delete category with subcategories",
                code="CATEGORY_HAS_CHILDREN",
                details={"child_count": child_count},
            )

        slug = category.slug
        try:
            self.category_repo.delete(category)
        except IntegrityError:
            # A subcategory was added after the check above
            self.db_session.rollback()
            logger.warning(f"Rejected delete of category {category_id}: subcategory added concurrently")
            raise CategoryNotEmptyError(
                "Cannot delete category with subcategories",
                code="CATEGORY_HAS_CHILDREN",
                details={"child_count": None},
            )
        logger.info(f"Deleted category '{slug}' ({category_id})")

    def attach_products(self, category_id: UUID, product_ids: List[UUID]) -> int:
        """
        Add products to a category and return its product count.

        Membership is additive: listed products are added, ones already
        attached are left alone and products not listed keep their membership.
        """
        ids = list(dict.fromkeys(product_ids or []))
        if not ids:
            raise ValidationError("At least one product ID is required")
        self._get_or_404(category_id)

        existing = self.product_repo.existing_ids(ids)
        missing = [str(product_id) for product_id in ids if product_id not in existing]
        if missing:
            raise NotFoundError(
                "One or more products not found", details={"missing_product_ids": missing}
            )

        attached = self.category_repo.attached_product_ids(category_id, ids)
        to_add = [product_id for product_id in ids if product_id not in attached]
        try:
            self.category_repo.add_products(category_id, to_add)
        except IntegrityError:
            self.db_session.rollback()
            raise ConflictError("One or more products are already in this category")

        count = self.category_repo.product_counts([category_id]).get(category_id, 0)
        logger.info(f"Attached {len(to_add)} products to category {category_id}, now {count}")
        return count

    def detach_products(self, category_id: UUID, product_ids: List[UUID]) -> int:
        """
        Remove the listed products from a category and return its product count.

        Unlike attach, ids that are unknown or not attached are ignored.
        """
        ids = list(dict.fromkeys(product_ids or []))
        if not ids:
            raise ValidationError("At least one product ID is required")
        self._get_or_404(category_id)

        self.category_repo.remove_products(category_id, ids)

        count = self.category_repo.product_counts([category_id]).get(category_id, 0)
        logger.info(f"Detached products from category {category_id}, now {count}")
        return count
