# catalog/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from catalog.schemas.common import Pagination


class ProductBase(BaseModel):
    """Base Pydantic model for Product data"""

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(0, ge=0)
    quantity: int = Field(0, ge=0, description="Units in stock")
    images: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False


class ProductCreate(ProductBase):
    """Schema for creating a new Product"""

    pass


class ProductInDB(ProductBase):
    """Schema for Product as stored in DB (includes DB fields)"""

    id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductSummary(ProductInDB):
    """Product as listed under a category"""

    pass


class ProductListResponse(BaseModel):
    products: List[ProductSummary]
    pagination: Pagination
