from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockroom.database import Base


class Category(Base):
    """
    Product category. Rows are created on first reference by name and are
    never deleted by the API.

    Names are unique regardless of case; the stored casing is the one used
    the first time the category was named.
    """
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"


Index("uq_categories_name_lower", func.lower(Category.name), unique=True)
