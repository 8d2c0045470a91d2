from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from stockroom.models.category import Category
from stockroom.models.product import Product

PRODUCT_ORDER_FIELDS = ("name", "price", "stock", "category")

_PRODUCT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "stock": Product.stock,
}


def validate_product_order_field(order_by: str) -> bool:
    return order_by in PRODUCT_ORDER_FIELDS


def normalize_order(order: Optional[str]) -> str:
    return "desc" if order == "desc" else "asc"


def build_product_filters(
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> List[ColumnElement]:
    """
    Build the WHERE predicates for a product listing.

    The predicates are combined with AND by the caller. ``search`` matches
    product name, SKU or category name, case-insensitively; queries using it
    must join ``Product.category``.
    """
    filters = []

    if category_id is not None:
        filters.append(Product.category_id == category_id)

    if is_active is not None:
        filters.append(Product.is_active.is_(is_active))

    if search and search.strip():
        term = search.strip()
        filters.append(
            or_(
                Product.name.icontains(term, autoescape=True),
                Product.sku.icontains(term, autoescape=True),
                Category.name.icontains(term, autoescape=True),
            )
        )

    return filters


def build_product_filters_for_role(
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    is_admin: bool = False,
    is_active: Optional[bool] = None,
) -> List[ColumnElement]:
    """Non-admins only ever see active products; admins may filter on isActive."""
    if not is_admin:
        is_active = True
    return build_product_filters(category_id, search, is_active)


def build_product_order_by(order_by: str, order: str) -> Tuple[ColumnElement, ...]:
    """
    ORDER BY clause for a product listing.

    ``category`` sorts on the joined category name rather than the foreign key.
    Product id breaks ties so pages are stable.
    """
    column = Category.name if order_by == "category" else _PRODUCT_COLUMNS[order_by]
    if order == "desc":
        return column.desc(), Product.id.desc()
    return column.asc(), Product.id.asc()


def build_product_image_url(image: Optional[str], server_url: str) -> Optional[str]:
    return f"{server_url}/uploads/products/{image}" if image else None
