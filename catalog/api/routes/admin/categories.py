"""Admin API for category writes"""
from fastapi import APIRouter, Response, status
from uuid import UUID

from catalog.core.dependencies import AdminContext, CategoryServiceDep
from catalog.core.logging import get_logger
from catalog.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductIdsRequest,
    ProductMembershipResponse,
)

logger = get_logger(__name__)

# Router
categories_admin_router = APIRouter()


@categories_admin_router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
)
async def create_category(
    data: CategoryCreate,
    admin: AdminContext,
    service: CategoryServiceDep,
) -> CategoryResponse:
    """
    **Create Category**

    - **name**: Category name (required); the slug is derived from it
    - **parent_id**: Parent category ID for hierarchical structure (optional)
    - **description**, **image**, **is_active**, **is_featured**, **order**, **metadata**: optional

    Returns 409 when another category already has the derived slug and
    404 when the parent does not exist.
    """
    logger.info(f"Admin {admin.email} creating category '{data.name}'")
    return CategoryResponse(category=service.create_category(data))


@categories_admin_router.patch(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    summary="Update category",
)
async def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    admin: AdminContext,
    service: CategoryServiceDep,
) -> CategoryResponse:
    """
    **Update Category**

    Partial update; fields left out are not touched.

    - **name**: regenerates the slug (409 on collision)
    - **parent_id**: new parent, or null for a top-level category; 400 when the
      category would become its own parent or a child of its own descendant
    """
    logger.info(f"Admin {admin.email} updating category {category_id}")
    return CategoryResponse(category=service.update_category(category_id, data))


@categories_admin_router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete category",
)
async def delete_category(
    category_id: UUID,
    admin: AdminContext,
    service: CategoryServiceDep,
) -> Response:
    """Delete an empty category. Returns 400 when it still has products or subcategories."""
    logger.info(f"Admin {admin.email} deleting category {category_id}")
    service.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@categories_admin_router.post(
    "/categories/{category_id}/products",
    response_model=ProductMembershipResponse,
    summary="Add products to category",
)
async def attach_products(
    category_id: UUID,
    data: ProductIdsRequest,
    admin: AdminContext,
    service: CategoryServiceDep,
) -> ProductMembershipResponse:
    """
    Add products to a category. Existing memberships are kept; adding a
    product that is already attached is a no-op. Returns 404 with
    `missing_product_ids` when any product does not exist.
    """
    count = service.attach_products(category_id, data.product_ids)
    return ProductMembershipResponse(message="Products added to category successfully", count=count)


@categories_admin_router.delete(
    "/categories/{category_id}/products",
    response_model=ProductMembershipResponse,
    summary="Remove products from category",
)
async def detach_products(
    category_id: UUID,
    data: ProductIdsRequest,
    admin: AdminContext,
    service: CategoryServiceDep,
) -> ProductMembershipResponse:
    count = service.detach_products(category_id, data.product_ids)
    return ProductMembershipResponse(message="Products removed from category successfully", count=count)
