from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from stockroom.models.category import Category
from stockroom.services.exceptions import NotFoundError, ValidationError
from stockroom.utils.cache import cache_service
from stockroom.validators.category import validate_category_id, validate_category_name

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Resolves category references for product writes and serves the
    (cached) category list.

    A category named for the first time is not created up front: it is
    added to the session and persisted by the same commit as the product
    that references it.
    """

    CACHE_PREFIX = "categories"
    CACHE_KEY = "all"

    def __init__(self, db: Session):
        self.db = db

    def resolve_by_id(self, category_id) -> Category:
        """
        Look up an existing category by ID.

        Raises:
            ValidationError: If the ID is not a positive integer
            NotFoundError: If no category has this ID
        """
        result = validate_category_id(category_id)
        if not result.is_valid:
            raise ValidationError(result.error)

        category = self.db.query(Category).filter(Category.id == result.value).first()
        if not category:
            raise NotFoundError("The specified category does not exist")
        return category

    def resolve_by_name(self, category_name: Optional[str]) -> Category:
        """
        Find a category by name (case-insensitive) or stage a new one.

        A new category keeps the caller's casing and is only added to the
        session; it has no ID until the caller commits.

        Raises:
            ValidationError: If the trimmed name is shorter than 2 characters
        """
        result = validate_category_name(category_name if category_name is not None else "")
        if not result.is_valid:
            raise ValidationError(result.error)

        name = result.value
        existing = (
            self.db.query(Category)
            .filter(func.lower(Category.name) == name.lower())
            .first()
        )
        if existing:
            return existing

        category = Category(name=name)
        self.db.add(category)
        logger.info(f"Staged new category '{name}'")
        return category

    def resolve(self, category_id=None, category_name: Optional[str] = None) -> Category:
        """Resolve by ID when given, otherwise by name."""
        if category_id is not None:
            return self.resolve_by_id(category_id)
        return self.resolve_by_name(category_name)

    def list_all(self) -> List[dict]:
        """All categories ordered by name, read through the cache."""
        cached = cache_service.get(self.CACHE_PREFIX, self.CACHE_KEY)
        if cached is not None:
            return cached

        categories = [
            {"id": category.id, "name": category.name}
            for category in self.db.query(Category).order_by(Category.name.asc()).all()
        ]
        cache_service.set(self.CACHE_PREFIX, self.CACHE_KEY, categories)
        return categories

    def invalidate_cache(self) -> None:
        cache_service.delete(self.CACHE_PREFIX, self.CACHE_KEY)
