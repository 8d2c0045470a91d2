from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockroom.database import get_db
from stockroom.schemas.category import CategoryListResponse
from stockroom.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get(
    "/",
    response_model=CategoryListResponse,
    summary="List categories",
    description="All categories ordered by name. Results are cached in Redis."
)
def list_categories(db: Session = Depends(get_db)):
    return CategoryListResponse(categories=CategoryService(db).list_all())
