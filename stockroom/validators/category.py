from typing import Any, Optional

from stockroom.validators.result import ValidationResult, fail, ok, parse_int

MIN_CATEGORY_NAME_LENGTH = 2


def validate_category_id(category_id: Any) -> ValidationResult:
    if category_id is None:
        return ok()
    category_id_num = parse_int(category_id)
    if category_id_num is None or category_id_num <= 0:
        return fail("categoryId must be a valid number greater than 0")
    return ok(category_id_num)


def validate_category_name(category_name: Optional[str]) -> ValidationResult:
    if category_name is None:
        return ok()
    trimmed = category_name.strip()
    if len(trimmed) < MIN_CATEGORY_NAME_LENGTH:
        return fail("Category name must be at least 2 characters long")
    return ok(trimmed)
