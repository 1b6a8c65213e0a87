"""
Email Verification Service

Proves control of an email address before intake with a one-time code.

Flow:
1. ``request_verification`` refuses emails that already applied, supersedes
   any earlier challenge, stores a new 6-digit code and emails it.
2. ``verify_code`` accepts the code once, before it expires.

Expired, superseded, consumed and wrong codes all fail the same way, so a
caller cannot tell which one it hit. Codes are never logged.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import TransportError, send_email
from app.modules.admissions import repository
from app.modules.admissions.errors import (
    AlreadyRegisteredError,
    ConflictError,
    EmailDeliveryError,
    InvalidOrExpiredCodeError,
    StorageError,
)
from app.modules.admissions.schemas import VerificationRequestResponse, VerifyCodeResponse

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
VERIFICATION_SUBJECT = "Email Verification - Paynroll Admissions"


def generate_otp() -> str:
    """Generate a 6-digit numeric code."""
    return f"{secrets.randbelow(10**OTP_LENGTH):0{OTP_LENGTH}d}"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _verification_message(otp: str, expiry_minutes: int) -> str:
    return (
        f"Your verification code is: {otp}\n\n"
        f"This code will expire in {expiry_minutes} minutes.\n\n"
        "If you did not request this code, please ignore this email."
    )


async def request_verification(db: AsyncSession, email: str) -> VerificationRequestResponse:
    """
    Issue a verification code for an email.

    Args:
        db: Database session
        email: Address to verify

    Returns:
        VerificationRequestResponse with the code's expiry time

    Raises:
        AlreadyRegisteredError: If an applicant already used this email
        ConflictError: If a concurrent request for the same email won the race
        EmailDeliveryError: If the code could not be sent
        StorageError: If the challenge could not be stored
    """
    email = normalize_email(email)

    if await repository.email_registered(db, email):
        logger.info(f"Verification refused for registered email {email}")
        raise AlreadyRegisteredError()

    otp = generate_otp()
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.otp_expiry_minutes)

    try:
        await repository.replace_verification(db, email, otp, expires_at)
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Concurrent verification request for {email}: {e}")
        raise ConflictError("A verification request for this email is already in progress.") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to store verification challenge for {email}: {e}")
        raise StorageError("Failed to store verification code") from e

    try:
        await send_email(
            to_email=email,
            subject=VERIFICATION_SUBJECT,
            body_text=_verification_message(otp, settings.otp_expiry_minutes),
        )
    except TransportError as e:
        # The stored challenge stays; the next request supersedes it
        raise EmailDeliveryError(e.diagnostic or e.message) from e

    logger.info(f"Verification code issued for {email}")

    return VerificationRequestResponse(
        message="Verification code sent to your email.",
        expires_at=expires_at,
    )


async def verify_code(db: AsyncSession, email: str, otp: str) -> VerifyCodeResponse:
    """
    Validate and consume a verification code.

    Raises:
        InvalidOrExpiredCodeError: If no unexpired challenge matches the email and code
    """
    email = normalize_email(email)
    otp = otp.strip()

    try:
        consumed = await repository.consume_verification(db, email, otp, datetime.now(UTC))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to consume verification challenge for {email}: {e}")
        raise StorageError("Failed to verify code") from e

    if consumed is None:
        logger.info(f"Verification failed for {email}")
        raise InvalidOrExpiredCodeError()

    logger.info(f"Email {email} verified successfully")

    return VerifyCodeResponse(message="Email verified successfully.", email=email)


async def purge_expired(db: AsyncSession) -> int:
    """Delete expired challenges. Returns the number removed."""
    return await repository.delete_expired_verifications(db, datetime.now(UTC))
