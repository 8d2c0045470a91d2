from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from stockroom.api.deps import CurrentUser, get_current_user, to_http_exception
from stockroom.config import get_settings
from stockroom.database import get_db
from stockroom.helpers.pagination import build_pagination
from stockroom.helpers.sale_query import (
    SALE_ORDER_FIELDS,
    parse_date_bound,
    validate_sale_order_field,
)
from stockroom.schemas.sale import (
    SaleDetailResponse,
    SaleFilters,
    SaleListResponse,
    SaleResponse,
)
from stockroom.services.exceptions import ServiceError
from stockroom.services.sale_service import SaleService

router = APIRouter(prefix="/sales", tags=["Sales"])

settings = get_settings()


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


@router.get(
    "/",
    response_model=SaleListResponse,
    summary="List sales",
    description="""
    Paginated sales history.

    Filters: seller (`userId`), product, category, free-text `search` over
    product name/SKU and seller name/lastname, and an inclusive
    `startDate`/`endDate` range (ISO dates or datetimes).
    """
)
def list_sales(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    user_id: Optional[int] = Query(None, alias="userId", description="Filter by seller"),
    product_id: Optional[int] = Query(None, alias="productId", description="Filter by product"),
    category_id: Optional[int] = Query(None, alias="categoryId", description="Filter by product category"),
    search: Optional[str] = Query(None, description="Search product name/SKU or seller name"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Earliest sale date"),
    end_date: Optional[str] = Query(None, alias="endDate", description="Latest sale date"),
    order_by: str = Query("createdAt", alias="orderBy", description="createdAt, quantity, unitPrice or totalPrice"),
    order: str = Query("desc", description="asc or desc"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get paginated list of sales."""
    for field, value in (("userId", user_id), ("productId", product_id), ("categoryId", category_id)):
        if value is not None and value <= 0:
            raise _bad_request(f"{field} must be a valid number greater than 0")

    try:
        start = parse_date_bound(start_date)
    except ValueError:
        raise _bad_request("startDate must be a valid date")
    try:
        end = parse_date_bound(end_date, end_of_day=True)
    except ValueError:
        raise _bad_request("endDate must be a valid date")

    if not validate_sale_order_field(order_by):
        raise _bad_request(f"Invalid sort field. Allowed: {', '.join(SALE_ORDER_FIELDS)}")

    order = "asc" if order == "asc" else "desc"
    search = search.strip() if search and search.strip() else None

    service = SaleService(db)
    sales, total = service.get_sales(
        page=page,
        limit=limit,
        order_by=order_by,
        order=order,
        user_id=user_id,
        product_id=product_id,
        category_id=category_id,
        search=search,
        start_date=start,
        end_date=end,
    )

    return SaleListResponse(
        sales=[SaleResponse.from_sale(s, settings.BACKEND_URL) for s in sales],
        pagination=build_pagination(page, limit, total),
        filters=SaleFilters(
            user_id=user_id,
            product_id=product_id,
            category_id=category_id,
            search=search,
            start_date=start,
            end_date=end,
            order_by=order_by,
            order=order,
        )
    )


@router.get(
    "/{sale_id}",
    response_model=SaleDetailResponse,
    summary="Get sale by ID"
)
def get_sale(
    sale_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if sale_id <= 0:
        raise _bad_request("Invalid sale ID")

    service = SaleService(db)
    try:
        sale = service.get_sale(sale_id)
    except ServiceError as e:
        raise to_http_exception(e)

    return SaleDetailResponse(sale=SaleResponse.from_sale(sale, settings.BACKEND_URL))
