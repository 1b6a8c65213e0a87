"""
Admissions Service Layer

Business logic for the applicant lifecycle. Orchestrates repository
operations, decision emails and notification records.

This module implements:
1. Intake:
   - Validate required fields (all missing fields reported together)
   - Issue a system-generated admission id
   - Create the applicant record with status pending

2. Decision Transition:
   - Accept or reject an applicant (overwrite allowed unless disabled)
   - Email the decision (best effort)
   - Record a decision notification (best effort)

3. Ad-hoc Notes:
   - Email a note to an applicant or an explicit address
   - Record it as an info notification when it concerns an applicant

4. Read Operations:
   - Lookups by admission id, email and preferred course
   - Lists ordered by submission time and per-status counts

Failure semantics:
- The status write is the primary effect of a decision; once it commits it
  is never rolled back
- A failed decision email is reported as ``notified: false``
- A failed notification record is reported as ``warning``
- For ad-hoc notes delivery is the point, so a failed email is an error
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import TransportError, send_email
from app.modules.admissions import repository
from app.modules.admissions.errors import (
    ApplicantValidationError,
    ApplicationNotFoundError,
    ConflictError,
    EmailDeliveryError,
    InvalidStatusError,
    StatusAlreadyFinalError,
    StorageError,
)
from app.modules.admissions.identifiers import is_admission_id, new_admission_id
from app.modules.admissions.models import (
    DECISION_STATUSES,
    Applicant,
    ApplicantStatus,
    NotificationType,
)
from app.modules.admissions.notifications import compose_decision_message, record_notification
from app.modules.admissions.schemas import (
    AdmissionCountsResponse,
    ApplicantCreate,
    ApplicantResponse,
    ApplicantStatusResponse,
    CourseApplicantsResponse,
    CreateApplicationResponse,
    ListOrder,
    SendNoteResponse,
    TransitionStatusResponse,
)
from app.modules.admissions.verification import normalize_email

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "lastname",
    "firstname",
    "birth_date",
    "gender",
    "mobile_number",
    "email",
    "preferred_course",
)

# Course codes accepted by the course lookup
COURSE_CODES: dict[str, str] = {
    "bscs": "BS-Computer Science",
    "bsn": "BS-Nursing",
    "beed": "Bachelor of Elementary Education (Generalist)",
    "associate": "Associate in Computer Studies",
    "ab": "AB-Psychology",
    "coe": "BS-Computer Engineering",
    "accountancy": "BS-Accountancy",
    "tourism": "BS-Tourism Management",
    "culinary": "BS-Hospitality Management (Culinary)",
    "cruise": "BS-Hospitality Management (Cruise)",
    "bsee": "Bachelor of Secondary Education (English)",
    "bses": "Bachelor of Secondary Education (Science)",
    "bsem": "Bachelor of Secondary Education (Math)",
    "bsef": "Bachelor of Secondary Education (Filipino)",
    "bsess": "Bachelor of Secondary Education (Social Science)",
    "bsahr": "BS-Accountancy (Human Resource)",
    "bsafm": "BS-Accountancy (Financial Management)",
    "bsam": "BS-Accountancy (Marketing)",
}

NOTIFICATION_MISSING_APPLICANT = "Notification not saved due to missing applicant record."
NOTIFICATION_SAVE_FAILED = "Failed to save notification to database."


def _parse_status(value: str | ApplicantStatus) -> ApplicantStatus:
    raw = value.value if isinstance(value, ApplicantStatus) else str(value)
    try:
        return ApplicantStatus(raw.strip().lower())
    except ValueError as e:
        raise InvalidStatusError(raw) from e


async def _require_applicant(db: AsyncSession, admission_id: str) -> Applicant:
    applicant = None
    if is_admission_id(admission_id):
        applicant = await repository.get_by_admission_id(db, admission_id)
    if applicant is None:
        raise ApplicationNotFoundError(admission_id)
    return applicant


async def _record_best_effort(
    db: AsyncSession,
    admission_id: str,
    message: str,
    notification_type: NotificationType,
) -> tuple[str | None, str | None]:
    """
    Record a notification without letting a failure escape.

    Returns:
        Tuple of (notification_id, warning); exactly one is set
    """
    try:
        if not await repository.applicant_exists(db, admission_id):
            logger.warning(f"Applicant {admission_id} vanished before notification was recorded")
            return None, NOTIFICATION_MISSING_APPLICANT

        notification_id = await record_notification(db, admission_id, message, notification_type)
        return notification_id, None

    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record notification for {admission_id}: {e}")
        return None, NOTIFICATION_SAVE_FAILED


# ============================================
# Intake
# ============================================


async def create_application(db: AsyncSession, data: ApplicantCreate) -> CreateApplicationResponse:
    """
    Create a new application with status pending.

    Args:
        db: Database session
        data: Applicant form data

    Returns:
        CreateApplicationResponse with the issued admission id

    Raises:
        ApplicantValidationError: If required fields are missing or blank
        ConflictError: If the record collides with an existing one
        StorageError: If the insert fails for any other reason
    """
    fields = data.model_dump()

    missing = [
        name
        for name in REQUIRED_FIELDS
        if fields.get(name) is None or (isinstance(fields[name], str) and not fields[name].strip())
    ]
    if missing:
        raise ApplicantValidationError(missing)

    fields = {key: value.strip() if isinstance(value, str) else value for key, value in fields.items()}
    fields["email"] = normalize_email(fields["email"])

    admission_id = new_admission_id()

    try:
        applicant = await repository.create_applicant(db, admission_id, fields)
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Application insert conflicted for {admission_id}: {e}")
        raise ConflictError("An application with this identifier already exists.") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to create application: {e}")
        raise StorageError("Failed to save application") from e

    logger.info(
        f"Application created: admission_id={admission_id}, course={applicant.preferred_course}"
    )

    return CreateApplicationResponse(
        message="Application submitted successfully.",
        admission_id=applicant.admission_id,
        applicant_status=applicant.applicant_status,
    )


# ============================================
# Decision Transition
# ============================================


async def transition_status(
    db: AsyncSession,
    admission_id: str,
    new_status: str | ApplicantStatus,
    note: str | None = None,
    *,
    allow_override: bool | None = None,
) -> TransitionStatusResponse:
    """
    Accept or reject an applicant and notify them.

    Steps:
    1. Validate the requested status (accepted or rejected only)
    2. Load the applicant (nothing is written when it is missing)
    3. Refuse re-deciding a terminal record when overrides are disabled
    4. Write the status and decision time (fatal on failure); with overrides
       disabled the write only applies while the record is still pending
    5. Email the decision (failure reported as ``notified: false``)
    6. Record a decision notification (failure reported as ``warning``)

    Args:
        db: Database session
        admission_id: Applicant to decide on
        new_status: "accepted" or "rejected"
        note: Optional reviewer note included in the email
        allow_override: Overrides ``settings.allow_status_override`` when given

    Returns:
        TransitionStatusResponse with the updated record and side-effect outcome

    Raises:
        InvalidStatusError: If new_status is not accepted or rejected
        ApplicationNotFoundError: If the applicant does not exist
        StatusAlreadyFinalError: If already decided and overrides are disabled
        StorageError: If the status write fails
    """
    status = _parse_status(new_status)
    if status not in DECISION_STATUSES:
        raise InvalidStatusError(status.value)

    if allow_override is None:
        allow_override = settings.allow_status_override

    applicant = await _require_applicant(db, admission_id)

    previous_status = applicant.applicant_status
    if previous_status in DECISION_STATUSES and not allow_override:
        raise StatusAlreadyFinalError(admission_id, previous_status.value)

    try:
        if allow_override:
            applicant = await repository.update_status(db, applicant, status, datetime.now(UTC))
            written = True
        else:
            written = await repository.update_status_if_pending(
                db, applicant, status, datetime.now(UTC)
            )
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to update status for {admission_id}: {e}")
        raise StorageError("Failed to update applicant status") from e

    if not written:
        logger.info(f"Applicant {admission_id} was decided concurrently; {status.value} refused")
        raise StatusAlreadyFinalError(admission_id, applicant.applicant_status.value)

    logger.info(f"Applicant {admission_id} status: {previous_status.value} -> {status.value}")

    # Snapshot before side effects; a rollback below expires the instance
    applicant_data = ApplicantResponse.model_validate(applicant)

    subject, body = compose_decision_message(applicant, status, note)

    notified = True
    delivery_error = None
    try:
        await send_email(
            to_email=applicant.email,
            subject=subject,
            body_text=body,
            recipient_name=applicant.full_name,
        )
    except TransportError as e:
        notified = False
        delivery_error = e.diagnostic or e.message
        logger.warning(f"Decision email for {admission_id} not delivered: {delivery_error}")

    notification_id, warning = await _record_best_effort(
        db, admission_id, body, NotificationType.DECISION
    )

    return TransitionStatusResponse(
        message="Applicant status updated successfully.",
        applicant=applicant_data,
        notified=notified,
        delivery_error=delivery_error,
        notification_id=notification_id,
        warning=warning,
    )


# ============================================
# Ad-hoc Notes
# ============================================


async def send_note(
    db: AsyncSession,
    note: str,
    subject: str | None = None,
    admission_id: str | None = None,
    email: str | None = None,
) -> SendNoteResponse:
    """
    Email a note and record it against the applicant.

    The recipient is the applicant's address when ``admission_id`` resolves,
    otherwise the explicit ``email``.

    Raises:
        ApplicantValidationError: If the note is blank
        ApplicationNotFoundError: If no recipient could be resolved
        EmailDeliveryError: If the email could not be sent (nothing is recorded)
    """
    if not note or not note.strip():
        raise ApplicantValidationError(["note"])

    recipient_email = normalize_email(email) if email else None
    recipient_name = "Applicant"

    if admission_id:
        applicant = (
            await repository.get_by_admission_id(db, admission_id)
            if is_admission_id(admission_id)
            else None
        )
        if applicant is not None:
            recipient_email = applicant.email
            recipient_name = applicant.full_name
        elif recipient_email is None:
            raise ApplicationNotFoundError(admission_id)

    if recipient_email is None:
        raise ApplicationNotFoundError()

    try:
        receipt = await send_email(
            to_email=recipient_email,
            subject=subject,
            body_text=note,
            recipient_name=recipient_name,
        )
    except TransportError as e:
        raise EmailDeliveryError(e.diagnostic or e.message) from e

    if not admission_id:
        return SendNoteResponse(message="Email sent successfully.", message_id=receipt.message_id)

    notification_id, warning = await _record_best_effort(
        db, admission_id, note, NotificationType.INFO
    )

    return SendNoteResponse(
        message=(
            "Email sent and notification saved successfully."
            if warning is None
            else "Email sent successfully, but the notification was not saved."
        ),
        message_id=receipt.message_id,
        notification_id=notification_id,
        warning=warning,
    )


# ============================================
# Read Operations
# ============================================


async def get_application(db: AsyncSession, admission_id: str) -> Applicant:
    """Get an applicant by admission id."""
    return await _require_applicant(db, admission_id)


async def get_status_by_email(db: AsyncSession, email: str) -> ApplicantStatusResponse:
    """Get the status of the most recent application for an email."""
    applicant = await repository.get_latest_by_email(db, normalize_email(email))
    if applicant is None:
        raise ApplicationNotFoundError()

    return ApplicantStatusResponse(
        admission_id=applicant.admission_id,
        applicant_status=applicant.applicant_status,
        firstname=applicant.firstname,
        lastname=applicant.lastname,
        decided_at=applicant.decided_at,
    )


async def list_applications(
    db: AsyncSession,
    order: ListOrder = "newest",
    status: str | None = None,
) -> list[Applicant]:
    """List applicants by submission time, optionally filtered by status."""
    status_filter = _parse_status(status) if status else None
    return await repository.list_applicants(
        db, newest_first=(order != "oldest"), status=status_filter
    )


async def get_admission_counts(db: AsyncSession) -> AdmissionCountsResponse:
    """Count applicants in total and per status."""
    counts = await repository.count_by_status(db)

    return AdmissionCountsResponse(
        total=sum(counts.values()),
        pending=counts.get(ApplicantStatus.PENDING, 0),
        accepted=counts.get(ApplicantStatus.ACCEPTED, 0),
        rejected=counts.get(ApplicantStatus.REJECTED, 0),
    )


async def list_applications_by_course(db: AsyncSession, course: str) -> CourseApplicantsResponse:
    """
    List applicants by preferred course.

    ``course`` is a course code (e.g. ``bscs``); values that are not a known
    code are matched as the full course name.
    """
    code = course.strip().lower()
    course_name = COURSE_CODES.get(code, course.strip())

    applicants = await repository.list_by_preferred_course(db, course_name)

    return CourseApplicantsResponse(
        course_code=code,
        course_name=course_name,
        total=len(applicants),
        applicants=[ApplicantResponse.model_validate(a) for a in applicants],
    )
