# catalog/schemas/category.py
from pydantic import BaseModel, Field, ConfigDict, AliasChoices, field_validator
from typing import Optional, List, Dict, Any
from urllib.parse import urlparse
from uuid import UUID
from datetime import datetime

from catalog.schemas.common import Pagination
from catalog.schemas.product import ProductSummary


def _validate_image_url(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Invalid image URL")
    return v


class CategoryBase(BaseModel):
    """Base Pydantic model for Category data"""
    name: str = Field(..., max_length=100, description="Display name of the category")
    description: Optional[str] = Field(None, max_length=500, description="Optional description of the category")
    parent_id: Optional[UUID] = Field(None, description="Parent category ID, null for a top-level category")
    image: Optional[str] = Field(None, description="Image URL")
    is_active: bool = True
    is_featured: bool = False
    order: int = Field(0, ge=0, description="Display order among siblings")
    metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("metadata_", "metadata"),
        description="Free-form extension data",
    )


class CategoryCreate(CategoryBase):
    """Schema for creating a new Category. The slug is derived from the name."""

    @field_validator("name")
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("image")
    def validate_image(cls, v):
        return _validate_image_url(v)


class CategoryUpdate(BaseModel):
    """Schema for updating a Category (all fields optional, unset fields untouched)"""
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[UUID] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    order: Optional[int] = Field(None, ge=0)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("name")
    def validate_name(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("image")
    def validate_image(cls, v):
        return _validate_image_url(v)


class CategoryInDB(CategoryBase):
    """Schema for Category as stored in DB (includes DB fields)"""
    id: UUID
    slug: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryWithCounts(CategoryInDB):
    """Category summary as returned by list endpoints"""
    product_count: int = 0
    child_count: int = 0


class CategoryRef(BaseModel):
    """Minimal category reference, used for parents and breadcrumbs"""
    id: UUID
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class BreadcrumbItem(CategoryRef):
    pass


class CategoryChildSummary(CategoryRef):
    image: Optional[str] = None
    product_count: int = 0
    child_count: int = 0


class CategoryDetail(CategoryWithCounts):
    """Category with parent, children and optionally products"""
    parent: Optional[CategoryRef] = None
    children: Optional[List[CategoryChildSummary]] = None
    products: Optional[List[ProductSummary]] = None


class CategoryTreeNode(BaseModel):
    """Node of the nested category tree"""
    id: UUID
    name: str
    slug: str
    image: Optional[str] = None
    parent_id: Optional[UUID] = None
    order: int = 0
    is_active: bool = True
    is_featured: bool = False
    depth: int = 0
    product_count: int = 0
    child_count: int = 0
    children: List["CategoryTreeNode"] = Field(default_factory=list)


class CategoryListResponse(BaseModel):
    categories: List[CategoryWithCounts]
    pagination: Pagination


class CategoryTreeResponse(BaseModel):
    tree: List[CategoryTreeNode]


class CategoryResponse(BaseModel):
    category: CategoryDetail


class AncestorsResponse(BaseModel):
    ancestors: List[UUID]


class BreadcrumbsResponse(BaseModel):
    breadcrumbs: List[BreadcrumbItem]


class ProductIdsRequest(BaseModel):
    """Body of the attach/detach product endpoints"""
    product_ids: List[UUID] = Field(..., min_length=1, description="At least one product ID is required")


class ProductMembershipResponse(BaseModel):
    success: bool = True
    message: str
    count: int


class CategoriesResponse(BaseModel):
    categories: List[CategoryWithCounts]
