from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional

from stockroom.api.deps import (
    CurrentUser,
    get_current_user,
    get_optional_user,
    require_admin,
    to_http_exception,
)
from stockroom.config import get_settings
from stockroom.database import get_db
from stockroom.helpers.pagination import build_pagination
from stockroom.helpers.product_query import (
    PRODUCT_ORDER_FIELDS,
    normalize_order,
    validate_product_order_field,
)
from stockroom.schemas.common import MessageResponse
from stockroom.schemas.product import (
    ProductDetailResponse,
    ProductFilters,
    ProductListResponse,
    ProductMessageResponse,
    ProductResponse,
    SaleSummary,
    SellRequest,
    SellResponse,
    SoldProductResponse,
)
from stockroom.services.exceptions import ServiceError
from stockroom.services.product_service import ProductService
from stockroom.services.sale_service import SaleService
from stockroom.utils.files import ImageUpload

router = APIRouter(prefix="/products", tags=["Products"])

settings = get_settings()


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="List products",
    description="""
    Paginated product list with search, category filter and sorting.

    Anonymous users and non-admins only see active products. Admins see all
    products unless they pass `isActive`.
    """
)
def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    order_by: str = Query("name", alias="orderBy", description="name, price, stock or category"),
    order: str = Query("asc", description="asc or desc"),
    category_id: Optional[int] = Query(None, alias="categoryId", description="Filter by category"),
    search: Optional[str] = Query(None, description="Search by name, SKU or category name"),
    is_active: Optional[bool] = Query(None, alias="isActive", description="Filter by status (admins only)"),
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Get paginated list of products."""
    if category_id is not None and category_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="categoryId must be a valid number greater than 0"
        )

    if not validate_product_order_field(order_by):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort field. Allowed: {', '.join(PRODUCT_ORDER_FIELDS)}"
        )

    order = normalize_order(order)
    is_admin = current_user is not None and current_user.is_admin
    if not is_admin:
        is_active = True

    service = ProductService(db)
    products, total = service.get_all(
        page=page,
        limit=limit,
        order_by=order_by,
        order=order,
        category_id=category_id,
        search=search,
        is_admin=is_admin,
        is_active=is_active,
    )

    return ProductListResponse(
        products=[ProductResponse.from_product(p, settings.BACKEND_URL) for p in products],
        pagination=build_pagination(page, limit, total),
        filters=ProductFilters(
            category_id=category_id,
            order_by=order_by,
            order=order,
            search=search or None,
            is_active=is_active,
        )
    )


@router.get(
    "/{product_id}",
    response_model=ProductDetailResponse,
    summary="Get product by ID",
    description="Disabled products are only visible to admins."
)
def get_product(
    product_id: int,
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    is_admin = current_user is not None and current_user.is_admin
    service = ProductService(db)
    try:
        product = service.get_by_id(product_id, include_inactive=is_admin)
    except ServiceError as e:
        raise to_http_exception(e)

    return ProductDetailResponse(product=ProductResponse.from_product(product, settings.BACKEND_URL))


@router.post(
    "/",
    response_model=ProductMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="""
    Create a product from a multipart form.

    - **name**, **price**, **stock**: required
    - **categoryId** or **categoryName**: exactly one; an unknown name creates the category
    - **sku**: optional, must be unique
    - **isActive**: optional, defaults to true
    - **image**: optional jpeg/png/webp file up to 5MB
    """
)
def create_product(
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    sku: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    category_name: Optional[str] = Form(None, alias="categoryName"),
    is_active: Optional[str] = Form(None, alias="isActive"),
    image: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = ProductService(db)
    try:
        with ImageUpload(image) as upload:
            product = service.create(
                name=name,
                price=price,
                stock=stock,
                sku=sku,
                category_id=category_id,
                category_name=category_name,
                is_active=is_active,
                image_filename=upload.filename,
            )
            upload.keep()
    except ServiceError as e:
        raise to_http_exception(e)

    return ProductMessageResponse(
        message="Product created successfully",
        product=ProductResponse.from_product(product, settings.BACKEND_URL)
    )


@router.put(
    "/{product_id}",
    response_model=ProductMessageResponse,
    summary="Update a product",
    description="""
    Partial update from a multipart form: only the fields sent are changed.
    A blank `sku` clears the SKU. A new `image` replaces the previous one.
    """
)
def update_product(
    product_id: int,
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    sku: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    category_name: Optional[str] = Form(None, alias="categoryName"),
    is_active: Optional[str] = Form(None, alias="isActive"),
    image: Optional[UploadFile] = File(None),
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    fields = {
        "name": name,
        "price": price,
        "stock": stock,
        "sku": sku,
        "category_id": category_id,
        "category_name": category_name,
        "is_active": is_active,
    }

    service = ProductService(db)
    try:
        with ImageUpload(image) as upload:
            product = service.update(product_id, fields, image_filename=upload.filename)
            upload.keep()
    except ServiceError as e:
        raise to_http_exception(e)

    return ProductMessageResponse(
        message="Product updated successfully",
        product=ProductResponse.from_product(product, settings.BACKEND_URL)
    )


@router.patch(
    "/{product_id}/toggle-status",
    response_model=ProductMessageResponse,
    summary="Enable or disable a product"
)
def toggle_product_status(
    product_id: int,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = ProductService(db)
    try:
        product = service.toggle_status(product_id)
    except ServiceError as e:
        raise to_http_exception(e)

    return ProductMessageResponse(
        message=f"Product {'enabled' if product.is_active else 'disabled'} successfully",
        product=ProductResponse.from_product(product, settings.BACKEND_URL)
    )


@router.patch(
    "/{product_id}/sell",
    response_model=SellResponse,
    summary="Sell a product",
    description="""
    Sell units of an active product and record the sale.

    **Stock handling:**
    The stock check and decrement run in one transaction with a row lock and
    a conditional update, so concurrent sales can never oversell:
    - Only requests that fit the remaining stock succeed
    - Others receive a 400 error with an 'Insufficient stock' message
    """
)
def sell_product(
    product_id: int,
    payload: SellRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = SaleService(db)
    try:
        result = service.sell(product_id, payload.quantity, current_user.id)
    except ServiceError as e:
        raise to_http_exception(e)

    product = ProductResponse.from_product(result.product, settings.BACKEND_URL)
    return SellResponse(
        message=f"Sale recorded. {result.sale.quantity} unit(s) sold",
        sale=SaleSummary.model_validate(result.sale),
        product=SoldProductResponse(
            **product.model_dump(),
            previous_stock=result.previous_stock,
            new_stock=result.new_stock,
        )
    )


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    summary="Delete a product",
    description="Delete a product that has never been sold. Sold products must be disabled instead."
)
def delete_product(
    product_id: int,
    current_user: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = ProductService(db)
    try:
        service.delete(product_id)
    except ServiceError as e:
        raise to_http_exception(e)

    return MessageResponse(message="Product deleted successfully")
