# catalog/db/models/associations.py
from sqlalchemy import Table, Column, ForeignKey, Index, Uuid
from catalog.db.base import Base

# Product to Category many-to-many association
product_categories = Table(
    'product_categories',
    Base.metadata,
    Column('product_id', Uuid(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), primary_key=True),
    Column('category_id', Uuid(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True),
    Index('ix_product_categories_category_id', 'category_id'),
)
