from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager
from typing import Any, List, Optional, Tuple
import logging

from stockroom.helpers.pagination import page_offset
from stockroom.helpers.product_query import (
    build_product_filters_for_role,
    build_product_order_by,
)
from stockroom.models.product import Product
from stockroom.models.sale import Sale
from stockroom.services.category_service import CategoryService
from stockroom.services.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from stockroom.utils.files import delete_product_image
from stockroom.validators.product import validate_partial_product_data, validate_product_data
from stockroom.validators.sku import validate_sku_format, validate_sku_uniqueness

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for Product operations.

    This service handles:
    - Listing products with search, filters, sorting and pagination
    - Creating products (validation, SKU uniqueness, category find-or-create)
    - Partial updates that only touch the supplied fields
    - Enabling/disabling and deleting products

    Image files are stored by the API layer before the service runs; the
    service records the filename and removes replaced images once the
    change is committed.
    """

    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryService(db)

    def get_all(
        self,
        page: int = 1,
        limit: int = 10,
        order_by: str = "name",
        order: str = "asc",
        category_id: Optional[int] = None,
        search: Optional[str] = None,
        is_admin: bool = False,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[Product], int]:
        """
        Get a page of products.

        Args:
            page: Page number (1-indexed)
            limit: Number of items per page
            order_by: One of name, price, stock, category
            order: asc or desc
            category_id: Only products in this category
            search: Case-insensitive match on name, SKU or category name
            is_admin: Admins also see disabled products
            is_active: Explicit active filter (admins only)

        Returns:
            Tuple of (products list, total count)
        """
        filters = build_product_filters_for_role(category_id, search, is_admin, is_active)
        query = (
            self.db.query(Product)
            .join(Product.category)
            .options(contains_eager(Product.category))
            .filter(*filters)
        )

        total = query.count()
        products = (
            query.order_by(*build_product_order_by(order_by, order))
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return products, total

    def get_by_id(self, product_id: int, include_inactive: bool = True) -> Product:
        """
        Get a product by ID.

        Raises:
            NotFoundError: If the product doesn't exist, or is disabled and
                ``include_inactive`` is False
        """
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product or (not include_inactive and not product.is_active):
            raise NotFoundError("Product not found")
        return product

    def create(
        self,
        name: Optional[str],
        price: Any,
        stock: Any,
        sku: Optional[str] = None,
        category_id: Any = None,
        category_name: Optional[str] = None,
        is_active: Any = None,
        image_filename: Optional[str] = None,
    ) -> Product:
        """
        Create a new product.

        Exactly one of ``category_id`` / ``category_name`` must be given; an
        unknown category name creates the category in the same commit.

        Raises:
            ValidationError: Missing or invalid fields (400)
            NotFoundError: ``category_id`` does not exist (404)
            ConflictError: SKU already in use (409)
        """
        try:
            validation = validate_product_data(
                name, price, stock, category_id, category_name, is_active
            )
            if not validation.is_valid:
                raise ValidationError(validation.error)
            data = validation.value

            sku_value = self._check_sku(sku) if sku else None

            category = self.categories.resolve(category_id, category_name)
            new_category = self._is_pending(category)

            product = Product(
                name=data["name"],
                price=data["price"],
                stock=data["stock"],
                sku=sku_value,
                image=image_filename,
                is_active=data["is_active"],
                category=category,
            )
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)

            if new_category:
                self.categories.invalidate_cache()

            logger.info(f"Product #{product.id} created")
            return product

        except ServiceError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error creating product: {e}")
            raise ConflictError("Product conflicts with an existing record (duplicate SKU or category)")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating product: {e}")
            raise

    def update(
        self,
        product_id: int,
        fields: dict,
        image_filename: Optional[str] = None,
    ) -> Product:
        """
        Partially update a product.

        Only fields present in ``fields`` with a non-None value are applied;
        everything else keeps its stored value. A blank ``sku`` clears the
        SKU. A new image replaces the previous file, which is deleted after
        the update is committed.

        Args:
            product_id: ID of product to update
            fields: Any of name, price, stock, sku, category_id,
                category_name, is_active
            image_filename: Newly stored image, if one was uploaded

        Raises:
            NotFoundError: Product (or referenced category ID) not found
            ValidationError: Invalid field or nothing to update
            ConflictError: SKU already used by another product
        """
        try:
            product = self.get_by_id(product_id)

            supplied = {key: value for key, value in fields.items() if value is not None}
            validation = validate_partial_product_data({**supplied, "image": image_filename})
            if not validation.is_valid:
                raise ValidationError(validation.error)
            validated = validation.value

            update_data = {}

            if "name" in validated:
                update_data["name"] = validated["name"]
            if "price" in validated:
                update_data["price"] = validated["price"]
            if "stock" in validated:
                update_data["stock"] = validated["stock"]
            if "is_active" in validated:
                update_data["is_active"] = validated["is_active"]

            if "sku" in supplied:
                new_sku = supplied["sku"].strip()
                if not new_sku:
                    update_data["sku"] = None
                elif new_sku == product.sku:
                    update_data["sku"] = new_sku
                else:
                    update_data["sku"] = self._check_sku(new_sku, exclude_id=product.id)

            new_category = False
            if "category_id" in supplied or "category_name" in supplied:
                category = self.categories.resolve(
                    supplied.get("category_id"), supplied.get("category_name")
                )
                new_category = self._is_pending(category)
                update_data["category"] = category

            previous_image = None
            if image_filename:
                previous_image = product.image
                update_data["image"] = image_filename

            if not update_data:
                raise ValidationError("No fields to update")

            for field, value in update_data.items():
                setattr(product, field, value)

            self.db.commit()
            self.db.refresh(product)

            if previous_image:
                delete_product_image(previous_image)
            if new_category:
                self.categories.invalidate_cache()

            logger.info(f"Product #{product.id} updated: {', '.join(sorted(update_data))}")
            return product

        except ServiceError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error updating product #{product_id}: {e}")
            raise ConflictError("Product conflicts with an existing record (duplicate SKU or category)")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating product #{product_id}: {e}")
            raise

    def toggle_status(self, product_id: int) -> Product:
        """Enable a disabled product or disable an active one."""
        product = self.get_by_id(product_id)
        product.is_active = not product.is_active
        self.db.commit()
        self.db.refresh(product)

        logger.info(f"Product #{product.id} {'enabled' if product.is_active else 'disabled'}")
        return product

    def delete(self, product_id: int) -> None:
        """
        Delete a product that has never been sold, together with its image.

        Raises:
            NotFoundError: If the product doesn't exist
            ConflictError: If sales reference the product; disable it instead
        """
        product = self.get_by_id(product_id)

        has_sales = self.db.query(Sale.id).filter(Sale.product_id == product.id).first()
        if has_sales:
            raise ConflictError("Product has recorded sales and cannot be deleted; disable it instead")

        image = product.image
        self.db.delete(product)
        self.db.commit()

        delete_product_image(image)
        logger.info(f"Product #{product_id} deleted")

    def _check_sku(self, sku: str, exclude_id: Optional[int] = None) -> str:
        result = validate_sku_format(sku)
        if not result.is_valid:
            raise ValidationError(result.error)

        result = validate_sku_uniqueness(self.db, result.value, exclude_id)
        if not result.is_valid:
            raise ConflictError(result.error)
        return result.value

    @staticmethod
    def _is_pending(category) -> bool:
        return inspect(category).pending
