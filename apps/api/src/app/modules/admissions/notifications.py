"""
Notification records and decision message composition.

Recording is pure persistence and is independent of whether the email went
out. Delivery itself lives in ``app.core.email``.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.admissions import repository
from app.modules.admissions.errors import ApplicationNotFoundError
from app.modules.admissions.models import (
    Applicant,
    ApplicantNotification,
    ApplicantStatus,
    NotificationType,
)

logger = logging.getLogger(__name__)


async def record_notification(
    db: AsyncSession,
    admission_id: str,
    message: str,
    notification_type: NotificationType,
) -> str:
    """
    Append a notification record.

    Returns:
        The new notification_id

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If the insert fails (callers decide
            whether that is fatal)
    """
    notification = await repository.create_notification(
        db, admission_id, message, notification_type
    )
    logger.info(
        f"Recorded {notification_type.value} notification {notification.notification_id} "
        f"for applicant {admission_id}"
    )
    return notification.notification_id


async def list_notifications(db: AsyncSession, admission_id: str) -> list[ApplicantNotification]:
    """List notifications for an applicant, newest first."""
    if not await repository.applicant_exists(db, admission_id):
        raise ApplicationNotFoundError(admission_id)
    return await repository.list_notifications(db, admission_id)


def compose_decision_message(
    applicant: Applicant,
    status: ApplicantStatus,
    note: str | None = None,
) -> tuple[str, str]:
    """
    Build the subject and body of a decision notice.

    Args:
        applicant: The decided applicant
        status: ACCEPTED or REJECTED
        note: Optional reviewer note appended to the body

    Returns:
        Tuple of (subject, body)
    """
    if status == ApplicantStatus.ACCEPTED:
        subject = "Admission Decision - Accepted"
        body = (
            f"Congratulations! Your application ({applicant.admission_id}) for "
            f"{applicant.preferred_course} has been accepted.\n\n"
            "Please wait for further instructions regarding enrollment."
        )
    else:
        subject = "Admission Decision - Update on Your Application"
        body = (
            f"Thank you for your interest. After careful review, we regret to inform you "
            f"that your application ({applicant.admission_id}) for "
            f"{applicant.preferred_course} was not accepted."
        )

    if note and note.strip():
        body = f"{body}\n\nNote from the admissions office:\n{note.strip()}"

    return subject, body
