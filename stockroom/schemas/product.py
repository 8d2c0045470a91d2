from datetime import datetime
from typing import Optional

from stockroom.helpers.product_query import build_product_image_url
from stockroom.schemas.category import CategoryResponse
from stockroom.schemas.common import CamelModel, PaginationInfo


class ProductResponse(CamelModel):
    """Schema for product response including all fields."""
    id: int
    name: str
    price: int
    stock: int
    sku: Optional[str] = None
    image: Optional[str] = None
    is_active: bool
    category_id: int
    category: Optional[CategoryResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_product(cls, product, server_url: str) -> "ProductResponse":
        """Build the response with the stored image filename turned into a public URL."""
        response = cls.model_validate(product)
        response.image = build_product_image_url(product.image, server_url)
        return response


class ProductFilters(CamelModel):
    category_id: Optional[int] = None
    order_by: str
    order: str
    search: Optional[str] = None
    is_active: Optional[bool] = None


class ProductListResponse(CamelModel):
    """Schema for paginated product list response."""
    products: list[ProductResponse]
    pagination: PaginationInfo
    filters: ProductFilters


class ProductDetailResponse(CamelModel):
    product: ProductResponse


class ProductMessageResponse(CamelModel):
    message: str
    product: ProductResponse


class SellRequest(CamelModel):
    """Schema for selling units of a product."""
    quantity: int


class SaleSummary(CamelModel):
    id: int
    quantity: int
    unit_price: int
    total_price: int
    created_at: Optional[datetime] = None


class SoldProductResponse(ProductResponse):
    previous_stock: int
    new_stock: int


class SellResponse(CamelModel):
    message: str
    sale: SaleSummary
    product: SoldProductResponse
