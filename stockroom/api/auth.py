from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from stockroom.api.deps import to_http_exception
from stockroom.database import get_db
from stockroom.schemas.auth import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenRequest,
    VerifyResetTokenResponse,
)
from stockroom.schemas.common import MessageResponse
from stockroom.services.auth_service import AuthService
from stockroom.services.exceptions import ServiceError
from stockroom.tasks.email_tasks import send_password_reset_email, send_verification_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

RESET_REQUESTED_MESSAGE = "If the email is registered, you will receive a link to reset your password"


def _queue(task, *args) -> None:
    # The account change is already committed; queueing failures are only logged
    try:
        task.delay(*args)
    except Exception as e:
        logger.error(f"Could not queue {task.name}: {e}")


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create an unverified account and email a verification link (valid 24 hours)."
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    try:
        user = service.register(payload.name, payload.lastname, payload.email, payload.password)
    except ServiceError as e:
        raise to_http_exception(e)

    _queue(send_verification_email, user.email, user.name, user.email_token)
    return RegisterResponse(
        message="Account created. Check your email to verify your account",
        requires_verification=True
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Sign in",
    description="""
    Exchange email and password for a bearer token.

    Unverified accounts get a 403 with `requiresVerification: true`.
    """
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    try:
        _, token = service.login(payload.email, payload.password)
    except ServiceError as e:
        raise to_http_exception(e)

    return LoginResponse(message="Signed in successfully", token=token)


@router.post("/verify-email", response_model=MessageResponse, summary="Verify an email address")
def verify_email(payload: TokenRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    try:
        service.verify_email(payload.token)
    except ServiceError as e:
        raise to_http_exception(e)

    return MessageResponse(message="Email verified. You can now sign in")


@router.post("/resend-verification", response_model=MessageResponse, summary="Resend the verification email")
def resend_verification(payload: EmailRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    try:
        user = service.resend_verification(payload.email)
    except ServiceError as e:
        raise to_http_exception(e)

    _queue(send_verification_email, user.email, user.name, user.email_token)
    return MessageResponse(message="A new verification email has been sent")


@router.post(
    "/request-password-reset",
    response_model=MessageResponse,
    summary="Request a password reset",
    description="Always answers with the same message whether or not the email is registered."
)
def request_password_reset(payload: EmailRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    try:
        user = service.request_password_reset(payload.email)
    except ServiceError as e:
        raise to_http_exception(e)

    if user is not None:
        _queue(send_password_reset_email, user.email, user.name, user.reset_password_token)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/verify-reset-token", response_model=VerifyResetTokenResponse, summary="Check a reset token")
def verify_reset_token(payload: TokenRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    try:
        user = service.verify_reset_token(payload.token)
    except ServiceError as e:
        raise to_http_exception(e)

    return VerifyResetTokenResponse(message="Valid token", email=user.email)


@router.post("/reset-password", response_model=MessageResponse, summary="Set a new password")
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    service = AuthService(db)
    try:
        service.reset_password(payload.token, payload.password)
    except ServiceError as e:
        raise to_http_exception(e)

    return MessageResponse(message="Password reset successfully. You can now sign in")
