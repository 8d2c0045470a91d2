from stockroom.schemas.common import CamelModel


class CategoryResponse(CamelModel):
    """Schema for a category reference."""
    id: int
    name: str


class CategoryListResponse(CamelModel):
    categories: list[CategoryResponse]
