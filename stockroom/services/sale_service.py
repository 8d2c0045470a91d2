from dataclasses import dataclass
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager, joinedload
from typing import List, Optional, Tuple
import logging

from stockroom.helpers.pagination import page_offset
from stockroom.helpers.sale_query import build_sale_filters, build_sale_order_by
from stockroom.models.product import Product
from stockroom.models.sale import Sale
from stockroom.services.exceptions import (
    InsufficientStockError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class SaleResult:
    """Outcome of a successful sale."""
    sale: Sale
    product: Product
    previous_stock: int
    new_stock: int


class SaleService:
    """
    Service class for sales with race-safe stock handling.

    STOCK HANDLING:
    ===============
    A sale reads the product with SELECT ... FOR UPDATE, so concurrent sales
    of the same product queue behind each other, and then decrements stock
    with a conditional UPDATE:

        UPDATE products SET stock = stock - :quantity
        WHERE id = :product_id AND stock >= :quantity

    If the conditional update matches no row the sale is rejected, so stock
    can never go negative even where the database ignores row locks. The
    decrement and the sale row are committed together or not at all.
    """

    def __init__(self, db: Session):
        self.db = db

    def sell(self, product_id: int, quantity: int, user_id: int) -> SaleResult:
        """
        Sell ``quantity`` units of a product on behalf of ``user_id``.

        Args:
            product_id: ID of the product to sell
            quantity: Units to sell, must be positive
            user_id: Seller recorded on the sale

        Returns:
            SaleResult with the sale, updated product and stock before/after

        Raises:
            ValidationError: If product ID or quantity is not positive
            NotFoundError: If the product doesn't exist or is disabled
            InsufficientStockError: If not enough stock is available
        """
        if product_id <= 0:
            raise ValidationError("Invalid product ID")
        if quantity <= 0:
            raise ValidationError("Invalid sale quantity")

        try:
            product = (
                self.db.query(Product)
                .filter(Product.id == product_id)
                .with_for_update()
                .first()
            )

            if not product or not product.is_active:
                raise NotFoundError("Product not found")

            previous_stock = product.stock
            if previous_stock < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock. Available: {previous_stock}, Requested: {quantity}"
                )

            unit_price = product.price
            result = self.db.execute(
                update(Product)
                .where(Product.id == product_id, Product.stock >= quantity)
                .values(stock=Product.stock - quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise InsufficientStockError(
                    f"Insufficient stock or concurrent modification for product {product_id}"
                )

            sale = Sale(
                product_id=product_id,
                user_id=user_id,
                quantity=quantity,
                unit_price=unit_price,
                total_price=unit_price * quantity,
            )
            self.db.add(sale)
            self.db.commit()
            self.db.refresh(sale)
            self.db.refresh(product)

            logger.info(
                f"Sale #{sale.id}: {quantity} x product #{product_id} by user #{user_id} "
                f"(stock {previous_stock} -> {product.stock})"
            )

            return SaleResult(
                sale=sale,
                product=product,
                previous_stock=previous_stock,
                new_stock=product.stock,
            )

        except ServiceError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            # Handle constraint violations (e.g., stock going negative)
            self.db.rollback()
            logger.error(f"Integrity error recording sale: {e}")
            raise InsufficientStockError("Stock constraint violated - concurrent modification detected")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error recording sale: {e}")
            raise

    def get_sale(self, sale_id: int) -> Sale:
        """
        Get a sale with its product, category and seller.

        Raises:
            NotFoundError: If the sale doesn't exist
        """
        sale = (
            self._with_relations(self.db.query(Sale))
            .filter(Sale.id == sale_id)
            .first()
        )
        if not sale:
            raise NotFoundError("Sale not found")
        return sale

    def get_sales(
        self,
        page: int = 1,
        limit: int = 10,
        order_by: str = "createdAt",
        order: str = "desc",
        user_id: Optional[int] = None,
        product_id: Optional[int] = None,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Tuple[List[Sale], int]:
        """
        Get a page of sales.

        Returns:
            Tuple of (sales list, total count)
        """
        filters = build_sale_filters(user_id, product_id, category_id, search, start_date, end_date)
        query = self._with_relations(self.db.query(Sale)).filter(*filters)

        total = query.count()
        sales = (
            query.order_by(*build_sale_order_by(order_by, order))
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return sales, total

    @staticmethod
    def _with_relations(query):
        return (
            query.join(Sale.product)
            .join(Sale.user)
            .options(
                contains_eager(Sale.product).joinedload(Product.category),
                contains_eager(Sale.user),
            )
        )
