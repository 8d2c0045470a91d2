import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import quote

from stockroom.config import get_settings
from stockroom.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

settings = get_settings()


def build_verification_email(email: str, name: str, token: str) -> tuple[str, str]:
    """Subject and HTML body of the account verification email."""
    url = f"{settings.FRONTEND_URL}/auth/verify-email?token={token}&email={quote(email)}"
    body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Welcome {name}!</h2>
        <p>Thanks for signing up. Confirm your account with the link below:</p>
        <p><a href="{url}">Verify my account</a></p>
        <p>Or paste this link into your browser:</p>
        <p style="word-break: break-all;">{url}</p>
        <p><strong>This link expires in 24 hours.</strong>
        You can request a new one from the sign-in page.</p>
    </div>
    """
    return "Verify your account", body


def build_password_reset_email(email: str, name: str, token: str) -> tuple[str, str]:
    """Subject and HTML body of the password reset email."""
    url = f"{settings.FRONTEND_URL}/auth/reset-password?token={token}&email={quote(email)}"
    body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Reset your password</h2>
        <p>Hi {name},</p>
        <p>We received a request to reset your password. If it was you, use the link below:</p>
        <p><a href="{url}">Reset password</a></p>
        <p style="word-break: break-all;">{url}</p>
        <p><strong>This link expires in 1 hour.</strong>
        If you did not ask for this, you can ignore this email.</p>
    </div>
    """
    return "Reset your password", body


def send_email(to: str, subject: str, body_html: str) -> None:
    """
    Send an HTML email over SMTP with STARTTLS.

    Raises:
        smtplib.SMTPException, OSError: If the message could not be sent
    """
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM or settings.SMTP_USER
    msg["To"] = to
    msg.attach(MIMEText(body_html, "html"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(msg["From"], [to], msg.as_string())


@celery_app.task(bind=True, name="send_verification_email")
def send_verification_email(self, email: str, name: str, token: str) -> dict:
    """
    Background task sending the account verification link.

    Args:
        email: Recipient address
        name: Recipient first name, used in the greeting
        token: Email verification token

    Returns:
        Dictionary with delivery result
    """
    logger.info(f"Sending verification email to {email}")
    subject, body = build_verification_email(email, name, token)
    try:
        send_email(email, subject, body)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending verification email to {email}: {e}")
        raise self.retry(exc=e, countdown=60, max_retries=3)

    logger.info(f"Verification email sent to {email}")
    return {"status": "sent", "email": email, "type": "verification"}


@celery_app.task(bind=True, name="send_password_reset_email")
def send_password_reset_email(self, email: str, name: str, token: str) -> dict:
    """Background task sending the password reset link."""
    logger.info(f"Sending password reset email to {email}")
    subject, body = build_password_reset_email(email, name, token)
    try:
        send_email(email, subject, body)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending password reset email to {email}: {e}")
        raise self.retry(exc=e, countdown=60, max_retries=3)

    logger.info(f"Password reset email sent to {email}")
    return {"status": "sent", "email": email, "type": "password_reset"}
