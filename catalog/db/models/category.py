# catalog/db/models/category.py
from sqlalchemy import (
    Column, String, Text, Boolean, Integer, ForeignKey, JSON, Uuid, DateTime, Index,
    func, true, false,
)
from sqlalchemy.orm import relationship
from catalog.db.base import Base
from catalog.db.models.associations import product_categories
import uuid


class Category(Base):
    """
    Category model for the storefront catalog.
    Categories form a forest through the nullable self-referencing parent_id.
    """

    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    description = Column(String(500))
    image = Column(Text)
    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
    )
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    is_featured = Column(Boolean, nullable=False, default=False, server_default=false())
    order = Column(Integer, nullable=False, default=0, server_default="0")
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    parent = relationship("Category", remote_side=[id], back_populates="children")
    # Deleting a parent never re-homes its children; the foreign key rejects it
    children = relationship("Category", back_populates="parent", passive_deletes="all")
    products = relationship(
        "Product", secondary=product_categories, back_populates="categories"
    )

    __table_args__ = (
        Index("ix_categories_parent_order_name", "parent_id", "order", "name"),
    )

    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}', parent_id={self.parent_id})>"
