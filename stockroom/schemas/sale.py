from datetime import datetime
from typing import Optional

from stockroom.helpers.product_query import build_product_image_url
from stockroom.schemas.category import CategoryResponse
from stockroom.schemas.common import CamelModel, PaginationInfo


class SaleSeller(CamelModel):
    id: int
    name: str
    lastname: str
    email: str


class SaleProduct(CamelModel):
    id: int
    name: str
    sku: Optional[str] = None
    image: Optional[str] = None
    price: int
    category: Optional[CategoryResponse] = None


class SaleResponse(CamelModel):
    """Schema for a recorded sale with its product and seller."""
    id: int
    product_id: int
    user_id: int
    quantity: int
    unit_price: int
    total_price: int
    created_at: Optional[datetime] = None
    user: SaleSeller
    product: SaleProduct

    @classmethod
    def from_sale(cls, sale, server_url: str) -> "SaleResponse":
        response = cls.model_validate(sale)
        response.product.image = build_product_image_url(sale.product.image, server_url)
        return response


class SaleFilters(CamelModel):
    user_id: Optional[int] = None
    product_id: Optional[int] = None
    category_id: Optional[int] = None
    search: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    order_by: str
    order: str


class SaleListResponse(CamelModel):
    """Schema for paginated sales list response."""
    sales: list[SaleResponse]
    pagination: PaginationInfo
    filters: SaleFilters


class SaleDetailResponse(CamelModel):
    sale: SaleResponse
