from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from stockroom.models.product import Product
from stockroom.models.sale import Sale
from stockroom.models.user import User
from stockroom.utils.dates import to_naive_utc

SALE_ORDER_FIELDS = ("createdAt", "quantity", "unitPrice", "totalPrice")

_SALE_COLUMNS = {
    "createdAt": Sale.created_at,
    "quantity": Sale.quantity,
    "unitPrice": Sale.unit_price,
    "totalPrice": Sale.total_price,
}


def validate_sale_order_field(order_by: str) -> bool:
    return order_by in SALE_ORDER_FIELDS


def parse_date_bound(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse an ISO date or datetime query value into a naive UTC datetime.

    A bare date (``2024-05-31``) means the start of that day, or the very
    end of it when ``end_of_day`` is set, so an end date is inclusive.

    Raises:
        ValueError: If the value is not an ISO date/datetime
    """
    if value is None or not value.strip():
        return None
    value = value.strip()
    if len(value) == 10:
        day = date.fromisoformat(value)
        if end_of_day:
            return datetime.combine(day, time.min) + timedelta(days=1) - timedelta(microseconds=1)
        return datetime.combine(day, time.min)
    return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def build_sale_filters(
    user_id: Optional[int] = None,
    product_id: Optional[int] = None,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[ColumnElement]:
    """
    Build the WHERE predicates for a sales listing.

    Queries using these must join ``Sale.product`` and ``Sale.user``:
    the category filter goes through the product, and ``search`` matches
    product name, product SKU, seller name or seller lastname.
    """
    filters = []

    if user_id is not None:
        filters.append(Sale.user_id == user_id)

    if product_id is not None:
        filters.append(Sale.product_id == product_id)

    if category_id is not None:
        filters.append(Product.category_id == category_id)

    if search and search.strip():
        term = search.strip()
        filters.append(
            or_(
                Product.name.icontains(term, autoescape=True),
                Product.sku.icontains(term, autoescape=True),
                User.name.icontains(term, autoescape=True),
                User.lastname.icontains(term, autoescape=True),
            )
        )

    if start_date is not None:
        filters.append(Sale.created_at >= start_date)

    if end_date is not None:
        filters.append(Sale.created_at <= end_date)

    return filters


def build_sale_order_by(order_by: str, order: str) -> Tuple[ColumnElement, ...]:
    """ORDER BY clause for a sales listing; unknown fields fall back to newest first."""
    column = _SALE_COLUMNS.get(order_by)
    if column is None:
        return Sale.created_at.desc(), Sale.id.desc()
    if order == "asc":
        return column.asc(), Sale.id.asc()
    return column.desc(), Sale.id.desc()
