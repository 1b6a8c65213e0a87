"""
Admissions Router

API endpoints for the admission lifecycle. Handlers are thin: each delegates
to a service function. Service errors are turned into the error envelope by
the exception handlers registered in ``app.main``.

Endpoints:
- POST /applicants - Submit a new application
- GET /applicants - List applications (order, status filter)
- GET /applicants/counts - Applicant counts per status
- GET /applicants/status - Application status by email
- GET /applicants/courses/{course} - Applicants by preferred course
- GET /applicants/{admission_id} - Get one application
- PATCH /applicants/{admission_id}/status - Accept or reject
- POST /applicants/{admission_id}/documents/{document_type} - Upload a document
- GET /applicants/{admission_id}/documents - List uploaded documents
- GET /applicants/{admission_id}/documents/{document_type}/current - Current document
- GET /applicants/{admission_id}/notifications - Notifications sent to an applicant
- GET /documents/{upload_id} - Get one document
- POST /email/send-note - Email an ad-hoc note
- POST /email/send-verification - Email a verification code
- POST /email/verify-otp - Check a verification code

Security:
- Verification endpoints are rate limited per email (Redis, memory fallback)
- Upload type and size are checked before anything is stored
"""

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import enforce_rate_limit
from app.modules.admissions import documents, notifications, service, verification
from app.modules.admissions.errors import InvalidDocumentTypeError
from app.modules.admissions.models import DocumentType
from app.modules.admissions.schemas import (
    AdmissionCountsResponse,
    ApplicantCreate,
    ApplicantDetailResponse,
    ApplicantListResponse,
    ApplicantResponse,
    ApplicantStatusResponse,
    CourseApplicantsResponse,
    CreateApplicationResponse,
    CurrentDocumentResponse,
    DocumentListResponse,
    DocumentLookupResponse,
    DocumentResponse,
    DocumentUploadResponse,
    ListOrder,
    NotificationListResponse,
    NotificationResponse,
    SendNoteRequest,
    SendNoteResponse,
    StatusUpdateRequest,
    TransitionStatusResponse,
    VerificationRequest,
    VerificationRequestResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _document_type(value: str) -> DocumentType:
    document_type = documents.resolve_document_type(value)
    if document_type is None:
        raise InvalidDocumentTypeError(value)
    return document_type


# ============================================
# Applicants
# ============================================


@router.post(
    "/applicants",
    response_model=CreateApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Application",
    tags=["Applicants"],
)
async def create_application(
    data: ApplicantCreate,
    db: AsyncSession = Depends(get_db),
) -> CreateApplicationResponse:
    """
    Submit a new admission application.

    Returns the issued admission id. Missing required fields are reported
    together in ``missing_fields``.
    """
    return await service.create_application(db, data)


@router.get(
    "/applicants",
    response_model=ApplicantListResponse,
    summary="List Applications",
    tags=["Applicants"],
)
async def list_applications(
    order: ListOrder = Query("newest", description="Sort by submission time"),
    applicant_status: str | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> ApplicantListResponse:
    applicants = await service.list_applications(db, order=order, status=applicant_status)
    return ApplicantListResponse(
        total=len(applicants),
        applicants=[ApplicantResponse.model_validate(a) for a in applicants],
    )


@router.get(
    "/applicants/counts",
    response_model=AdmissionCountsResponse,
    summary="Applicant Counts",
    tags=["Applicants"],
)
async def get_counts(db: AsyncSession = Depends(get_db)) -> AdmissionCountsResponse:
    return await service.get_admission_counts(db)


@router.get(
    "/applicants/status",
    response_model=ApplicantStatusResponse,
    summary="Application Status by Email",
    tags=["Applicants"],
)
async def get_status_by_email(
    email: str = Query(..., min_length=3, max_length=255),
    db: AsyncSession = Depends(get_db),
) -> ApplicantStatusResponse:
    return await service.get_status_by_email(db, email)


@router.get(
    "/applicants/courses/{course}",
    response_model=CourseApplicantsResponse,
    summary="Applicants by Course",
    tags=["Applicants"],
)
async def list_by_course(course: str, db: AsyncSession = Depends(get_db)) -> CourseApplicantsResponse:
    """List applicants by preferred course code (e.g. ``bscs``) or full course name."""
    return await service.list_applications_by_course(db, course)


@router.get(
    "/applicants/{admission_id}",
    response_model=ApplicantDetailResponse,
    summary="Get Application",
    tags=["Applicants"],
)
async def get_application(
    admission_id: str, db: AsyncSession = Depends(get_db)
) -> ApplicantDetailResponse:
    applicant = await service.get_application(db, admission_id)
    return ApplicantDetailResponse(applicant=ApplicantResponse.model_validate(applicant))


@router.patch(
    "/applicants/{admission_id}/status",
    response_model=TransitionStatusResponse,
    summary="Decide Application",
    tags=["Applicants"],
)
async def update_status(
    admission_id: str,
    data: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> TransitionStatusResponse:
    """
    Accept or reject an applicant.

    The status write is the primary effect. The decision email and the
    notification record are best effort; their outcome is reported through
    ``notified``, ``delivery_error`` and ``warning``.
    """
    response = await service.transition_status(db, admission_id, data.applicant_status, data.note)

    logger.info(
        f"Status updated: admission_id={admission_id}, status={response.applicant.applicant_status.value}, "
        f"notified={response.notified}"
    )
    return response


# ============================================
# Documents
# ============================================


@router.post(
    "/applicants/{admission_id}/documents/{document_type}",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    tags=["Documents"],
)
async def upload_document(
    admission_id: str,
    document_type: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
) -> DocumentUploadResponse:
    """
    Upload a supporting document (.png, .jpg, .jpeg or .pdf).

    ``document_type`` is one of birth_certificate, form137, shs_transcript,
    2x2_picture, or the slugs birth-certificate, diploma, tor, 2x2.
    """
    doc_type = _document_type(document_type)

    # Read at most one byte past the ceiling; enough to detect oversize files
    data = await file.read(settings.max_upload_bytes + 1)

    document = await documents.upload_document(
        db,
        admission_id=admission_id,
        document_type=doc_type,
        filename=file.filename or "",
        content_type=file.content_type,
        data=data,
    )

    return DocumentUploadResponse(
        message=f"{doc_type.value} uploaded successfully.",
        document=DocumentResponse.model_validate(document),
    )


@router.get(
    "/applicants/{admission_id}/documents",
    response_model=DocumentListResponse,
    summary="List Documents",
    tags=["Documents"],
)
async def list_documents(admission_id: str, db: AsyncSession = Depends(get_db)) -> DocumentListResponse:
    return DocumentListResponse(
        admission_id=admission_id,
        documents=await documents.list_documents(db, admission_id),
    )


@router.get(
    "/applicants/{admission_id}/documents/{document_type}/current",
    response_model=CurrentDocumentResponse,
    summary="Current Document",
    tags=["Documents"],
)
async def get_current_document(
    admission_id: str,
    document_type: str,
    db: AsyncSession = Depends(get_db),
) -> CurrentDocumentResponse:
    document = await documents.get_current_document(db, admission_id, _document_type(document_type))
    return CurrentDocumentResponse(document=DocumentResponse.model_validate(document))


@router.get(
    "/documents/{upload_id}",
    response_model=DocumentLookupResponse,
    summary="Get Document",
    tags=["Documents"],
)
async def get_document(upload_id: str, db: AsyncSession = Depends(get_db)) -> DocumentLookupResponse:
    return DocumentLookupResponse(document=await documents.get_document(db, upload_id))


# ============================================
# Notifications and Email
# ============================================


@router.get(
    "/applicants/{admission_id}/notifications",
    response_model=NotificationListResponse,
    summary="List Notifications",
    tags=["Notifications"],
)
async def list_notifications(
    admission_id: str, db: AsyncSession = Depends(get_db)
) -> NotificationListResponse:
    records = await notifications.list_notifications(db, admission_id)
    return NotificationListResponse(
        admission_id=admission_id,
        notifications=[NotificationResponse.model_validate(n) for n in records],
    )


@router.post(
    "/email/send-note",
    response_model=SendNoteResponse,
    summary="Send Note",
    tags=["Notifications"],
)
async def send_note(data: SendNoteRequest, db: AsyncSession = Depends(get_db)) -> SendNoteResponse:
    """
    Email a note to an applicant.

    Fails with 502 when the email cannot be sent. When the note concerns an
    applicant it is also recorded as an info notification; a failed record
    is reported as ``warning``.
    """
    return await service.send_note(
        db,
        note=data.note,
        subject=data.subject,
        admission_id=data.admission_id,
        email=data.email,
    )


@router.post(
    "/email/send-verification",
    response_model=VerificationRequestResponse,
    summary="Request Verification Code",
    tags=["Verification"],
)
async def send_verification(
    data: VerificationRequest, db: AsyncSession = Depends(get_db)
) -> VerificationRequestResponse:
    """
    Email a 6-digit verification code valid for 10 minutes.

    Rate limited per email. Fails with 409 when the email already applied.
    """
    await enforce_rate_limit(
        f"send_verification:{verification.normalize_email(data.email)}",
        settings.verification_rate_limit,
        settings.verification_rate_window_seconds,
    )
    return await verification.request_verification(db, data.email)


@router.post(
    "/email/verify-otp",
    response_model=VerifyCodeResponse,
    summary="Verify Code",
    tags=["Verification"],
)
async def verify_otp(data: VerifyCodeRequest, db: AsyncSession = Depends(get_db)) -> VerifyCodeResponse:
    """Check a verification code. Each code works once. Rate limited per email."""
    await enforce_rate_limit(
        f"verify_otp:{verification.normalize_email(data.email)}",
        settings.verification_rate_limit,
        settings.verification_rate_window_seconds,
    )
    return await verification.verify_code(db, data.email, data.otp)
