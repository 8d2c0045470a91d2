from datetime import timedelta
from sqlalchemy.orm import Session
from typing import Optional, Tuple
import logging

from stockroom.models.user import User, UserRole
from stockroom.services.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from stockroom.utils.dates import utcnow
from stockroom.utils.security import (
    create_access_token,
    generate_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

EMAIL_TOKEN_TTL = timedelta(hours=24)
RESET_TOKEN_TTL = timedelta(hours=1)

INVALID_CREDENTIALS = "Incorrect email or password"


class AuthService:
    """
    Account registration, sign-in and the email token lifecycle.

    An account starts unverified and becomes verified, once, by consuming
    its email token (24h). Password reset uses a separate single-use token
    (1h). The service only issues tokens; the API layer queues the emails.
    """

    def __init__(self, db: Session):
        self.db = db

    def register(self, name: str, lastname: str, email: str, password: str) -> User:
        """
        Create an unverified account with a fresh email verification token.

        Raises:
            ConflictError: If the email is already registered
        """
        normalized_email = email.strip().lower()
        if self._find_by_email(normalized_email):
            raise ConflictError("Email is already associated with another account")

        user = User(
            name=name,
            lastname=lastname,
            email=normalized_email,
            password=hash_password(password),
            role=UserRole.USER,
            email_verified=False,
        )
        self._issue_email_token(user)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User #{user.id} registered")
        return user

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue an access token.

        Raises:
            NotFoundError: Unknown email
            AuthenticationError: Wrong password
            PermissionDeniedError: Email not verified yet; the error carries
                ``requiresVerification`` so clients can offer a resend
        """
        user = self._find_by_email(email.strip().lower())
        if not user:
            raise NotFoundError(INVALID_CREDENTIALS)

        if not verify_password(password, user.password):
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.email_verified:
            raise PermissionDeniedError(
                "Please verify your email before signing in",
                extra={"requiresVerification": True, "email": user.email},
            )

        return user, create_access_token(user.id, user.role.value)

    def verify_email(self, token: str) -> User:
        """
        Consume an email verification token.

        Raises:
            ValidationError: Unknown or expired token
        """
        user = self.db.query(User).filter(User.email_token == token).first()
        if not user or self._expired(user.email_token_expires):
            raise ValidationError("Invalid or expired verification token")

        user.email_verified = True
        user.email_token = None
        user.email_token_expires = None
        self.db.commit()

        logger.info(f"User #{user.id} verified their email")
        return user

    def resend_verification(self, email: str) -> User:
        """
        Replace the verification token of an unverified account.

        Raises:
            NotFoundError: Unknown email
            ValidationError: Account already verified
        """
        user = self._find_by_email(email.strip().lower())
        if not user:
            raise NotFoundError("User not found")
        if user.email_verified:
            raise ValidationError("This account is already verified")

        self._issue_email_token(user)
        self.db.commit()
        return user

    def request_password_reset(self, email: str) -> Optional[User]:
        """
        Issue a password reset token.

        Returns None for unknown emails so callers can answer identically
        whether or not the account exists.

        Raises:
            ValidationError: The account exists but is not verified
        """
        user = self._find_by_email(email.strip().lower())
        if not user:
            logger.info("Password reset requested for an unknown email")
            return None
        if not user.email_verified:
            raise ValidationError("Please verify your email before resetting your password")

        user.reset_password_token = generate_token()
        user.reset_password_expires = utcnow() + RESET_TOKEN_TTL
        self.db.commit()
        return user

    def verify_reset_token(self, token: str) -> User:
        """
        Raises:
            ValidationError: Unknown or expired token
        """
        user = self.db.query(User).filter(User.reset_password_token == token).first()
        if not user or self._expired(user.reset_password_expires):
            raise ValidationError("Invalid or expired reset token")
        return user

    def reset_password(self, token: str, password: str) -> User:
        """
        Set a new password using a reset token. The token is cleared whether
        it was still valid or had expired.

        Raises:
            ValidationError: Unknown or expired token
        """
        user = self.db.query(User).filter(User.reset_password_token == token).first()
        if not user:
            raise ValidationError("Invalid or expired reset token")

        expired = self._expired(user.reset_password_expires)
        user.reset_password_token = None
        user.reset_password_expires = None
        if expired:
            self.db.commit()
            raise ValidationError("Invalid or expired reset token")

        user.password = hash_password(password)
        self.db.commit()

        logger.info(f"User #{user.id} reset their password")
        return user

    def _find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    @staticmethod
    def _issue_email_token(user: User) -> None:
        user.email_token = generate_token()
        user.email_token_expires = utcnow() + EMAIL_TOKEN_TTL

    @staticmethod
    def _expired(expires_at) -> bool:
        return expires_at is None or expires_at < utcnow()
