from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockroom.database import Base


class Product(Base):
    """
    Product model representing items available for sale.

    Attributes:
        id: Unique identifier for the product
        name: Product name
        price: Unit price in whole currency units (must be positive)
        stock: Available quantity (must be non-negative)
        sku: Optional stock keeping unit, unique when present
        image: Stored filename of the product image, if any
        is_active: Disabled products are hidden from non-admins and cannot be sold
        category_id: Reference to the product's category
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    price = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    sku = Column(String(50), nullable=True, unique=True, index=True)
    image = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="products")
    sales = relationship("Sale", back_populates="product")

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('price > 0', name='check_price_positive'),
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
