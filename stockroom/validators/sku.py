from typing import Optional

from sqlalchemy.orm import Session

from stockroom.models.product import Product
from stockroom.validators.result import ValidationResult, fail, ok

MAX_SKU_LENGTH = 50


def validate_sku_format(sku: Optional[str]) -> ValidationResult:
    if sku is None or not sku.strip():
        return fail("SKU cannot be empty")
    if len(sku.strip()) > MAX_SKU_LENGTH:
        return fail(f"SKU cannot be longer than {MAX_SKU_LENGTH} characters")
    return ok(sku.strip())


def validate_sku_uniqueness(db: Session, sku: str, exclude_id: Optional[int] = None) -> ValidationResult:
    """
    Check that no other product (active or not) already uses this SKU.

    Args:
        db: Database session
        sku: SKU to check; compared after trimming
        exclude_id: Product to ignore, used when updating that product
    """
    result = validate_sku_format(sku)
    if not result.is_valid:
        return result

    query = db.query(Product.id).filter(Product.sku == result.value)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)

    if query.first() is not None:
        return fail("SKU is already assigned to another product")

    return result
