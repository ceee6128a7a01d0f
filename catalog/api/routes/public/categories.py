"""Public read API for the category tree"""
from fastapi import APIRouter, Path, Query, status
from typing import Literal, Optional
from uuid import UUID

from catalog.core.dependencies import CategoryServiceDep
from catalog.core.exceptions import ValidationError
from catalog.schemas.category import (
    AncestorsResponse,
    BreadcrumbsResponse,
    CategoriesResponse,
    CategoryListResponse,
    CategoryResponse,
    CategoryTreeResponse,
)
from catalog.schemas.product import ProductListResponse

categories_router = APIRouter(
    responses={
        400: {"description": "Validation error"},
        404: {"description": "Not found"},
        500: {"description": "Internal server error"},
    },
)

# Value of the parent_id query parameter that selects top-level categories
TOP_LEVEL = "null"


def _parse_parent_id(parent_id: Optional[str]) -> Optional[UUID]:
    if parent_id is None or parent_id == TOP_LEVEL:
        return None
    try:
        return UUID(parent_id)
    except ValueError:
        raise ValidationError("Invalid parent category ID", details={"parent_id": parent_id})


@categories_router.get(
    "/categories",
    response_model=CategoryListResponse,
    status_code=status.HTTP_200_OK,
    summary="List categories",
)
async def list_categories(
    service: CategoryServiceDep,
    parent_id: Optional[str] = Query(
        None, description="Parent category ID, or 'null' for top-level categories only"
    ),
    include_inactive: bool = Query(False),
    featured: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    sort_by: Literal["name", "order", "created_at", "updated_at"] = Query("order"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
) -> CategoryListResponse:
    """
    List categories with product and child counts.

    - **parent_id**: only children of this category; `null` for top-level only
    - **include_inactive**: include categories with is_active=false
    - **page** / **limit**: pagination
    - **sort_by** / **sort_order**: ordering, ties broken by name
    """
    return service.list_categories(
        parent_id=_parse_parent_id(parent_id),
        top_level_only=parent_id == TOP_LEVEL,
        include_inactive=include_inactive,
        featured=featured,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@categories_router.get(
    "/categories/tree",
    response_model=CategoryTreeResponse,
    summary="Nested category tree",
)
async def get_category_tree(
    service: CategoryServiceDep,
    parent_id: Optional[UUID] = Query(None, description="Root of the subtree; omit for the whole forest"),
    include_inactive: bool = Query(False),
    max_depth: Optional[int] = Query(None, ge=1, le=50),
) -> CategoryTreeResponse:
    """Nested tree of categories, each node with product and child counts"""
    tree = service.get_tree(
        parent_id=parent_id, include_inactive=include_inactive, max_depth=max_depth
    )
    return CategoryTreeResponse(tree=tree)


@categories_router.get(
    "/categories/featured",
    response_model=CategoriesResponse,
    summary="Featured categories",
)
async def get_featured_categories(
    service: CategoryServiceDep,
    limit: Optional[int] = Query(None, ge=1, le=50),
) -> CategoriesResponse:
    return CategoriesResponse(categories=service.get_featured(limit))


@categories_router.get(
    "/categories/slug/{slug}",
    response_model=CategoryResponse,
    summary="Get category by slug",
)
async def get_category_by_slug(
    service: CategoryServiceDep,
    slug: str = Path(..., min_length=1, max_length=200),
    include_products: bool = Query(False),
) -> CategoryResponse:
    """Category page data: active children and, optionally, the first active products"""
    return CategoryResponse(category=service.get_by_slug(slug, include_products=include_products))


@categories_router.get(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    summary="Get category",
)
async def get_category(
    category_id: UUID,
    service: CategoryServiceDep,
    include_parent: bool = Query(True),
    include_children: bool = Query(True),
) -> CategoryResponse:
    category = service.get_category(
        category_id, include_parent=include_parent, include_children=include_children
    )
    return CategoryResponse(category=category)


@categories_router.get(
    "/categories/{category_id}/ancestors",
    response_model=AncestorsResponse,
    summary="Ancestor IDs, root first",
)
async def get_category_ancestors(category_id: UUID, service: CategoryServiceDep) -> AncestorsResponse:
    return AncestorsResponse(ancestors=service.get_ancestors(category_id))


@categories_router.get(
    "/categories/{category_id}/breadcrumbs",
    response_model=BreadcrumbsResponse,
    summary="Breadcrumb trail, root first",
)
async def get_category_breadcrumbs(category_id: UUID, service: CategoryServiceDep) -> BreadcrumbsResponse:
    return BreadcrumbsResponse(breadcrumbs=service.get_breadcrumbs(category_id))


@categories_router.get(
    "/categories/{category_id}/products",
    response_model=ProductListResponse,
    summary="Products in a category",
)
async def list_category_products(
    category_id: UUID,
    service: CategoryServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["name", "price", "created_at", "updated_at"] = Query("name"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    in_stock: Optional[bool] = Query(None),
    featured: Optional[bool] = Query(None),
) -> ProductListResponse:
    """
    Active products attached to a category.

    - **min_price** / **max_price**: price range, inclusive
    - **in_stock**: true for quantity > 0, false for sold out
    - **featured**: filter on the product's featured flag
    """
    return service.list_products(
        category_id,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        featured=featured,
    )
