from stockroom.models.user import UserRole
from stockroom.schemas.common import CamelModel


class UserResponse(CamelModel):
    id: int
    name: str
    lastname: str
    email: str
    role: UserRole


class UserListResponse(CamelModel):
    users: list[UserResponse]
