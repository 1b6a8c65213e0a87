"""
Admissions Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

# Re-use enums from models
from app.modules.admissions.models import ApplicantStatus, DocumentType, NotificationType


# ============================================
# Applicant Schemas
# ============================================


class ApplicantCreate(BaseModel):
    """
    Request body for POST /applicants.

    Every field is optional at the schema level. Required-field presence is
    checked by the service so that all missing fields are reported together.
    """

    # Personal information
    lastname: str | None = Field(None, max_length=100)
    firstname: str | None = Field(None, max_length=100)
    middlename: str | None = Field(None, max_length=100)
    suffix: str | None = Field(None, max_length=20)
    birth_date: date | None = None
    age: int | None = Field(None, ge=0, le=150)
    birth_place: str | None = Field(None, max_length=200)
    gender: str | None = Field(None, max_length=20)
    citizenship: str | None = Field(None, max_length=100)
    civil_status: str | None = Field(None, max_length=50)
    religion: str | None = Field(None, max_length=100)
    ethnicity: str | None = Field(None, max_length=100)

    # Address and contact
    street: str | None = Field(None, max_length=200)
    barangay: str | None = Field(None, max_length=100)
    municipality: str | None = Field(None, max_length=100)
    province: str | None = Field(None, max_length=100)
    home_address: str | None = Field(None, max_length=500)
    mobile_number: str | None = Field(None, max_length=20)
    email: EmailStr | None = None

    # Educational background
    last_school_attended: str | None = Field(None, max_length=200)
    strand_taken: str | None = Field(None, max_length=100)
    school_type: str | None = Field(None, max_length=50)
    year_graduated: int | None = Field(None, ge=1900, le=2100)
    school_address: str | None = Field(None, max_length=500)

    # Family information
    father_name: str | None = Field(None, max_length=200)
    father_occupation: str | None = Field(None, max_length=100)
    mother_name: str | None = Field(None, max_length=200)
    mother_occupation: str | None = Field(None, max_length=100)
    parent_number: str | None = Field(None, max_length=20)
    family_income: str | None = Field(None, max_length=100)

    # Course preferences
    preferred_course: str | None = Field(None, max_length=150)
    alternate_course_1: str | None = Field(None, max_length=150)
    alternate_course_2: str | None = Field(None, max_length=150)

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        """Form clients send empty strings for untouched inputs."""
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data


class ApplicantResponse(BaseModel):
    """Full applicant record."""

    model_config = ConfigDict(from_attributes=True)

    admission_id: str
    applicant_status: ApplicantStatus

    lastname: str
    firstname: str
    middlename: str | None
    suffix: str | None
    birth_date: date
    age: int | None
    birth_place: str | None
    gender: str
    citizenship: str | None
    civil_status: str | None
    religion: str | None
    ethnicity: str | None

    street: str | None
    barangay: str | None
    municipality: str | None
    province: str | None
    home_address: str | None
    mobile_number: str
    email: str

    last_school_attended: str | None
    strand_taken: str | None
    school_type: str | None
    year_graduated: int | None
    school_address: str | None

    father_name: str | None
    father_occupation: str | None
    mother_name: str | None
    mother_occupation: str | None
    parent_number: str | None
    family_income: str | None

    preferred_course: str
    alternate_course_1: str | None
    alternate_course_2: str | None

    submitted_at: datetime
    updated_at: datetime
    decided_at: datetime | None


class CreateApplicationResponse(BaseModel):
    """Response after an application is created."""

    success: bool = True
    message: str
    admission_id: str
    applicant_status: ApplicantStatus


class ApplicantDetailResponse(BaseModel):
    success: bool = True
    applicant: ApplicantResponse


class ApplicantListResponse(BaseModel):
    success: bool = True
    total: int
    applicants: list[ApplicantResponse]


class CourseApplicantsResponse(BaseModel):
    success: bool = True
    course_code: str
    course_name: str
    total: int
    applicants: list[ApplicantResponse]


class AdmissionCountsResponse(BaseModel):
    """Applicant counts per status."""

    success: bool = True
    total: int
    pending: int
    accepted: int
    rejected: int


class ApplicantStatusResponse(BaseModel):
    """Status lookup by email."""

    success: bool = True
    admission_id: str
    applicant_status: ApplicantStatus
    firstname: str
    lastname: str
    decided_at: datetime | None


# ============================================
# Status Transition Schemas
# ============================================


class StatusUpdateRequest(BaseModel):
    """
    Request body for PATCH /applicants/{admission_id}/status.

    ``applicant_status`` is a plain string so unsupported values are reported
    as INVALID_STATUS instead of a schema error.
    """

    applicant_status: str = Field(..., min_length=1, max_length=20)
    note: str | None = Field(None, max_length=5000)


class TransitionStatusResponse(BaseModel):
    """
    Outcome of a decision.

    The status write has succeeded whenever this is returned. ``notified`` and
    ``warning`` report the best-effort side effects.
    """

    success: bool = True
    message: str
    applicant: ApplicantResponse
    notified: bool
    delivery_error: str | None = None
    notification_id: str | None = None
    warning: str | None = None


# ============================================
# Document Schemas
# ============================================


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    upload_id: str
    admission_id: str
    document_type: DocumentType
    file_name: str
    original_name: str
    file_path: str
    file_size: int
    mime_type: str
    uploaded_at: datetime


class DocumentDetailResponse(DocumentResponse):
    """Single document with the owning applicant's name."""

    applicant_name: str | None = None
    orphaned: bool = False


class DocumentUploadResponse(BaseModel):
    success: bool = True
    message: str
    document: DocumentResponse


class DocumentListResponse(BaseModel):
    success: bool = True
    admission_id: str
    documents: list[DocumentResponse]


class DocumentLookupResponse(BaseModel):
    success: bool = True
    document: DocumentDetailResponse


class CurrentDocumentResponse(BaseModel):
    success: bool = True
    document: DocumentResponse


# ============================================
# Notification Schemas
# ============================================


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_id: str
    admission_id: str
    message: str
    notification_type: NotificationType
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    success: bool = True
    admission_id: str
    notifications: list[NotificationResponse]


class SendNoteRequest(BaseModel):
    """
    Request body for POST /email/send-note.

    The recipient is the applicant's address when ``admission_id`` resolves,
    otherwise ``email``.
    """

    note: str = Field(..., min_length=1, max_length=5000)
    subject: str | None = Field(None, max_length=200)
    admission_id: str | None = Field(None, max_length=20)
    email: EmailStr | None = None


class SendNoteResponse(BaseModel):
    success: bool = True
    message: str
    message_id: str
    notification_id: str | None = None
    warning: str | None = None


# ============================================
# Verification Schemas
# ============================================


class VerificationRequest(BaseModel):
    """Request body for POST /email/send-verification."""

    email: EmailStr


class VerificationRequestResponse(BaseModel):
    success: bool = True
    message: str
    expires_at: datetime


class VerifyCodeRequest(BaseModel):
    """Request body for POST /email/verify-otp."""

    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=10)


class VerifyCodeResponse(BaseModel):
    success: bool = True
    message: str
    email: str


# ============================================
# Query Types
# ============================================

ListOrder = Literal["newest", "oldest"]
