from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockroom.api.deps import CurrentUser, get_current_user
from stockroom.database import get_db
from stockroom.schemas.user import UserListResponse, UserResponse
from stockroom.services.user_service import UserService

router = APIRouter(tags=["Users"])


@router.get("/user", response_model=UserResponse, summary="Current user")
def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Profile of the user owning the bearer token."""
    return UserResponse(
        id=current_user.id,
        name=current_user.name,
        lastname=current_user.lastname,
        email=current_user.email,
        role=current_user.role
    )


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users",
    description="All accounts, used to filter the sales history by seller."
)
def list_users(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    users = UserService(db).get_all()
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users])
