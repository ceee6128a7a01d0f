# catalog/db/models/product.py
from sqlalchemy import (
    Column, String, Text, Boolean, Integer, Float, JSON, Uuid, DateTime, func, true, false
)
from sqlalchemy.orm import relationship
from catalog.db.base import Base
from catalog.db.models.associations import product_categories
import uuid


class Product(Base):
    """
    Product model. Only the columns the category listings filter and sort on
    are kept here; a product may belong to several categories.
    """

    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text)
    price = Column(Float, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0, comment="Units in stock")
    images = Column(JSON, default=list)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    is_featured = Column(Boolean, nullable=False, default=False, server_default=false())

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    categories = relationship(
        "Category", secondary=product_categories, back_populates="products"
    )

    def __repr__(self):
        return f"<Product(id={self.id}, slug='{self.slug}')>"
