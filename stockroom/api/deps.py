from dataclasses import dataclass
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Optional

from stockroom.database import get_db
from stockroom.models.user import UserRole
from stockroom.services.exceptions import ServiceError
from stockroom.services.user_service import UserService
from stockroom.utils.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated principal of a request."""
    id: int
    name: str
    lastname: str
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def to_http_exception(error: ServiceError) -> HTTPException:
    """Translate a service failure into the HTTP error returned to the client."""
    detail = {"error": error.message, **error.extra} if error.extra else error.message
    return HTTPException(status_code=error.status_code, detail=detail)


def _load_user(db: Session, token: str) -> Optional[CurrentUser]:
    claims = decode_access_token(token)
    if not claims or "id" not in claims:
        return None
    user = UserService(db).get_by_id(claims["id"])
    if not user:
        return None
    return CurrentUser(
        id=user.id,
        name=user.name,
        lastname=user.lastname,
        email=user.email,
        role=user.role,
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> CurrentUser:
    """Require a valid bearer token for an existing user."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized")

    user = _load_user(db, credentials.credentials)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[CurrentUser]:
    """Resolve the caller if a valid token is sent; anonymous otherwise."""
    if credentials is None or not credentials.credentials:
        return None
    return _load_user(db, credentials.credentials)


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Administrator permissions are required."
        )
    return current_user
