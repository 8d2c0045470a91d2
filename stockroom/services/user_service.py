from sqlalchemy.orm import Session
from typing import List, Optional

from stockroom.models.user import User


class UserService:
    """Read access to user accounts."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_all(self) -> List[User]:
        """All accounts ordered by name, used to filter sales by seller."""
        return self.db.query(User).order_by(User.name.asc(), User.lastname.asc()).all()
