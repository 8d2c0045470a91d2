from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from stockroom.database import Base


class UserRole(str, enum.Enum):
    """Enum for user roles."""
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """
    Account that can sign in and record sales.

    Verification and password reset tokens are single-use: they are cleared
    once consumed. Their expiry columns hold naive UTC timestamps.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    email_token = Column(String(64), nullable=True, unique=True, index=True)
    email_token_expires = Column(DateTime, nullable=True)
    reset_password_token = Column(String(64), nullable=True, unique=True, index=True)
    reset_password_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sales = relationship("Sale", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
