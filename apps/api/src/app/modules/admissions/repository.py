"""
Admissions Repository

Database operations for applicants, documents, notifications and email
verification challenges.

Design Principles:
- All queries are parameterized (no SQL injection)
- Async operations for non-blocking I/O
- Single responsibility - only database operations, no business logic
- Email comparisons are case-insensitive
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    Applicant,
    ApplicantDocument,
    ApplicantNotification,
    ApplicantStatus,
    DocumentType,
    EmailVerification,
    NotificationType,
)

# ============================================
# Applicant Repository
# ============================================


async def create_applicant(db: AsyncSession, admission_id: str, fields: dict[str, Any]) -> Applicant:
    """Create a new applicant record with status pending."""

    applicant = Applicant(
        admission_id=admission_id,
        applicant_status=ApplicantStatus.PENDING,
        **fields,
    )

    db.add(applicant)
    await db.commit()
    await db.refresh(applicant)

    return applicant


async def get_by_admission_id(db: AsyncSession, admission_id: str) -> Applicant | None:
    """Get applicant by admission id."""
    return await db.get(Applicant, admission_id)


async def applicant_exists(db: AsyncSession, admission_id: str) -> bool:
    """Check the database (not the session identity map) for an applicant."""
    result = await db.execute(
        select(Applicant.admission_id).where(Applicant.admission_id == admission_id)
    )
    return result.scalar_one_or_none() is not None


async def email_registered(db: AsyncSession, email: str) -> bool:
    """Check whether any applicant used this email."""
    result = await db.execute(
        select(Applicant.admission_id).where(func.lower(Applicant.email) == email.lower()).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_latest_by_email(db: AsyncSession, email: str) -> Applicant | None:
    """Get the most recently submitted application for an email."""
    result = await db.execute(
        select(Applicant)
        .where(func.lower(Applicant.email) == email.lower())
        .order_by(Applicant.submitted_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_applicants(
    db: AsyncSession,
    newest_first: bool = True,
    status: ApplicantStatus | None = None,
) -> list[Applicant]:
    """List applicants ordered by submission time, optionally filtered by status."""
    order = Applicant.submitted_at.desc() if newest_first else Applicant.submitted_at.asc()
    stmt = select(Applicant).order_by(order, Applicant.admission_id)

    if status:
        stmt = stmt.where(Applicant.applicant_status == status)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_by_preferred_course(db: AsyncSession, course_name: str) -> list[Applicant]:
    """List applicants whose preferred course matches, newest first."""
    result = await db.execute(
        select(Applicant)
        .where(Applicant.preferred_course == course_name)
        .order_by(Applicant.submitted_at.desc())
    )
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession) -> dict[ApplicantStatus, int]:
    """Count applicants grouped by status."""
    result = await db.execute(
        select(Applicant.applicant_status, func.count(Applicant.admission_id)).group_by(
            Applicant.applicant_status
        )
    )
    return {row[0]: row[1] for row in result.all()}


async def update_status(
    db: AsyncSession,
    applicant: Applicant,
    status: ApplicantStatus,
    decided_at: datetime,
) -> Applicant:
    """
    Write a decision onto an applicant.

    Overwrite semantics: the caller decides whether re-deciding is allowed.
    """
    applicant.applicant_status = status
    applicant.decided_at = decided_at

    await db.commit()
    await db.refresh(applicant)

    return applicant


async def update_status_if_pending(
    db: AsyncSession,
    applicant: Applicant,
    status: ApplicantStatus,
    decided_at: datetime,
) -> bool:
    """
    Write a decision only while the applicant is still pending.

    The status check and the write are one UPDATE statement, so of two
    concurrent decisions exactly one matches a row. The applicant is
    refreshed either way.

    Returns:
        True if this call wrote the decision, False if it was already decided
    """
    result = await db.execute(
        update(Applicant)
        .where(
            Applicant.admission_id == applicant.admission_id,
            Applicant.applicant_status == ApplicantStatus.PENDING,
        )
        .values(applicant_status=status, decided_at=decided_at)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(applicant)

    return result.rowcount == 1


# ============================================
# Document Repository
# ============================================


async def create_document(
    db: AsyncSession,
    upload_id: str,
    admission_id: str,
    document_type: DocumentType,
    file_name: str,
    original_name: str,
    file_path: str,
    file_size: int,
    mime_type: str,
) -> ApplicantDocument:
    """Create a document artifact row."""

    document = ApplicantDocument(
        upload_id=upload_id,
        admission_id=admission_id,
        document_type=document_type,
        file_name=file_name,
        original_name=original_name,
        file_path=file_path,
        file_size=file_size,
        mime_type=mime_type,
    )

    db.add(document)
    await db.commit()
    await db.refresh(document)

    return document


async def list_documents(db: AsyncSession, admission_id: str) -> list[ApplicantDocument]:
    """List every upload for an applicant, most recent first."""
    result = await db.execute(
        select(ApplicantDocument)
        .where(ApplicantDocument.admission_id == admission_id)
        .order_by(ApplicantDocument.uploaded_at.desc(), ApplicantDocument.upload_id.desc())
    )
    return list(result.scalars().all())


async def get_current_document(
    db: AsyncSession,
    admission_id: str,
    document_type: DocumentType,
) -> ApplicantDocument | None:
    """Get the most recent upload of one document type (ties broken by upload_id)."""
    result = await db.execute(
        select(ApplicantDocument)
        .where(
            ApplicantDocument.admission_id == admission_id,
            ApplicantDocument.document_type == document_type,
        )
        .order_by(ApplicantDocument.uploaded_at.desc(), ApplicantDocument.upload_id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_document_with_applicant(
    db: AsyncSession, upload_id: str
) -> tuple[ApplicantDocument, str | None, str | None] | None:
    """
    Get a document with its applicant's first and last name.

    Outer join, so a document whose applicant is missing still comes back
    with both names set to None.
    """
    result = await db.execute(
        select(ApplicantDocument, Applicant.firstname, Applicant.lastname)
        .outerjoin(Applicant, Applicant.admission_id == ApplicantDocument.admission_id)
        .where(ApplicantDocument.upload_id == upload_id)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1], row[2]


# ============================================
# Notification Repository
# ============================================


async def create_notification(
    db: AsyncSession,
    admission_id: str,
    message: str,
    notification_type: NotificationType,
) -> ApplicantNotification:
    """Append a notification record."""

    notification = ApplicantNotification(
        admission_id=admission_id,
        message=message,
        notification_type=notification_type,
        is_read=False,
    )

    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    return notification


async def list_notifications(db: AsyncSession, admission_id: str) -> list[ApplicantNotification]:
    """List notifications for an applicant, newest first."""
    result = await db.execute(
        select(ApplicantNotification)
        .where(ApplicantNotification.admission_id == admission_id)
        .order_by(
            ApplicantNotification.created_at.desc(),
            ApplicantNotification.notification_id.desc(),
        )
    )
    return list(result.scalars().all())


# ============================================
# Email Verification Repository
# ============================================


async def replace_verification(
    db: AsyncSession,
    email: str,
    otp: str,
    expires_at: datetime,
) -> EmailVerification:
    """
    Supersede any challenge for the email with a new one.

    The delete and insert commit together. A concurrent request for the same
    email makes one of the commits fail on the unique constraint.
    """
    await db.execute(delete(EmailVerification).where(EmailVerification.email == email))

    verification = EmailVerification(email=email, otp=otp, expires_at=expires_at)
    db.add(verification)
    await db.commit()
    await db.refresh(verification)

    return verification


async def consume_verification(
    db: AsyncSession,
    email: str,
    otp: str,
    now: datetime,
) -> UUID | None:
    """
    Delete the unexpired challenge matching an email and code.

    Matching and deleting happen in one statement; of two concurrent calls
    with the same code only one gets the row back.

    Returns:
        Id of the consumed challenge, or None if nothing matched
    """
    result = await db.execute(
        delete(EmailVerification)
        .where(
            EmailVerification.email == email,
            EmailVerification.otp == otp,
            EmailVerification.expires_at > now,
        )
        .returning(EmailVerification.id)
    )
    consumed = result.scalar_one_or_none()
    await db.commit()
    return consumed


async def delete_expired_verifications(db: AsyncSession, now: datetime) -> int:
    """Delete challenges that expired before ``now``. Returns the number removed."""
    result = await db.execute(delete(EmailVerification).where(EmailVerification.expires_at <= now))
    await db.commit()
    return result.rowcount or 0
