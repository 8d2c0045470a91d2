from typing import Any, Optional

from stockroom.validators.category import validate_category_id, validate_category_name
from stockroom.validators.result import ValidationResult, fail, ok, parse_int

UPDATABLE_FIELDS = (
    "name",
    "price",
    "stock",
    "sku",
    "category_id",
    "category_name",
    "is_active",
    "image",
)


def validate_product_name(name: Optional[str]) -> ValidationResult:
    if name is not None and not name.strip():
        return fail("Product name cannot be empty")
    return ok(name.strip() if name is not None else None)


def validate_product_price(price: Any) -> ValidationResult:
    """Prices are whole currency units, so they are parsed as integers."""
    if price is None:
        return ok()
    price_num = parse_int(price)
    if price_num is None or price_num <= 0:
        return fail("Price must be an integer greater than 0")
    return ok(price_num)


def validate_product_stock(stock: Any) -> ValidationResult:
    if stock is None:
        return ok()
    stock_num = parse_int(stock)
    if stock_num is None or stock_num < 0:
        return fail("Stock must be an integer greater than or equal to 0")
    return ok(stock_num)


def validate_is_active(is_active: Any) -> ValidationResult:
    if is_active is None:
        return ok()
    if isinstance(is_active, bool):
        return ok(is_active)
    if isinstance(is_active, str) and is_active.strip().lower() in ("true", "false"):
        return ok(is_active.strip().lower() == "true")
    return fail("isActive must be true or false")


def validate_at_least_one_field(data: dict) -> ValidationResult:
    if all(data.get(field) is None for field in UPDATABLE_FIELDS):
        return fail("At least one field must be provided for update")
    return ok()


def validate_product_data(
    name: Optional[str],
    price: Any,
    stock: Any,
    category_id: Any = None,
    category_name: Optional[str] = None,
    is_active: Any = None,
) -> ValidationResult:
    """
    Validate the fields needed to create a product.

    Returns:
        ValidationResult whose value is a dict with the normalized
        ``name``, ``price``, ``stock`` and ``is_active``
    """
    if not name or price is None or stock is None or (category_id is None and not category_name):
        return fail("Missing required fields: name, price, stock and a category are required")
    if category_id is not None and category_name:
        return fail("Provide either categoryId or categoryName, not both")

    checks = {
        "name": validate_product_name(name),
        "price": validate_product_price(price),
        "stock": validate_product_stock(stock),
        "category_id": validate_category_id(category_id),
        "category_name": validate_category_name(category_name),
        "is_active": validate_is_active(is_active),
    }
    for result in checks.values():
        if not result.is_valid:
            return result

    return ok({
        "name": checks["name"].value,
        "price": checks["price"].value,
        "stock": checks["stock"].value,
        "is_active": True if checks["is_active"].value is None else checks["is_active"].value,
    })


def validate_partial_product_data(data: dict) -> ValidationResult:
    """
    Validate only the supplied subset of an update.

    Returns:
        ValidationResult whose value maps each supplied field to its
        normalized value
    """
    result = validate_at_least_one_field(data)
    if not result.is_valid:
        return result

    checks = {
        "name": validate_product_name(data.get("name")),
        "price": validate_product_price(data.get("price")),
        "stock": validate_product_stock(data.get("stock")),
        "category_id": validate_category_id(data.get("category_id")),
        "category_name": validate_category_name(data.get("category_name")),
        "is_active": validate_is_active(data.get("is_active")),
    }
    for result in checks.values():
        if not result.is_valid:
            return result

    return ok({field: check.value for field, check in checks.items() if check.value is not None})
