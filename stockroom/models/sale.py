from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockroom.database import Base


class Sale(Base):
    """
    Sale model recording units of a product sold by a user.

    Sales are append-only: prices are captured at the time of sale so later
    product price changes do not rewrite history.

    Attributes:
        id: Unique identifier for the sale
        product_id: Reference to the sold product
        user_id: Reference to the seller
        quantity: Number of units sold
        unit_price: Product price at the time of sale
        total_price: quantity * unit_price
        created_at: Timestamp when the sale was recorded
    """
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Integer, nullable=False)
    total_price = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product", back_populates="sales")
    user = relationship("User", back_populates="sales")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
    )

    def __repr__(self):
        return f"<Sale(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
