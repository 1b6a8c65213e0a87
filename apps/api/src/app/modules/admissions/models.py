"""
Admissions Models

Database models for applicant records, uploaded documents, notifications
and email verification challenges.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Store enum values (not member names) in the database."""
    return [member.value for member in enum_cls]


class ApplicantStatus(str, enum.Enum):
    """Status of an admission application."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Statuses a reviewer can decide on
DECISION_STATUSES = frozenset({ApplicantStatus.ACCEPTED, ApplicantStatus.REJECTED})


class DocumentType(str, enum.Enum):
    """Categories of supporting documents."""

    BIRTH_CERTIFICATE = "birth_certificate"
    FORM137 = "form137"  # diploma
    SHS_TRANSCRIPT = "shs_transcript"  # transcript of records
    PICTURE_2X2 = "2x2_picture"


class NotificationType(str, enum.Enum):
    """Kinds of messages sent to applicants."""

    INFO = "info"
    DECISION = "decision"


class Applicant(Base):
    """
    One admission application.

    Keyed by a system-issued admission id, never a database sequence, so
    concurrent intakes cannot race for the same key.
    """

    __tablename__ = "applicants"

    admission_id: Mapped[str] = mapped_column(String(20), primary_key=True)

    # Personal information
    lastname: Mapped[str] = mapped_column(String(100), nullable=False)
    firstname: Mapped[str] = mapped_column(String(100), nullable=False)
    middlename: Mapped[str | None] = mapped_column(String(100), nullable=True)
    suffix: Mapped[str | None] = mapped_column(String(20), nullable=True)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    birth_place: Mapped[str | None] = mapped_column(String(200), nullable=True)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    citizenship: Mapped[str | None] = mapped_column(String(100), nullable=True)
    civil_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    religion: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ethnicity: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Address and contact
    street: Mapped[str | None] = mapped_column(String(200), nullable=True)
    barangay: Mapped[str | None] = mapped_column(String(100), nullable=True)
    municipality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    home_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    mobile_number: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Educational background
    last_school_attended: Mapped[str | None] = mapped_column(String(200), nullable=True)
    strand_taken: Mapped[str | None] = mapped_column(String(100), nullable=True)
    school_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    year_graduated: Mapped[int | None] = mapped_column(Integer, nullable=True)
    school_address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Family information
    father_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    father_occupation: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mother_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    mother_occupation: Mapped[str | None] = mapped_column(String(100), nullable=True)
    parent_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    family_income: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Course preferences
    preferred_course: Mapped[str] = mapped_column(String(150), nullable=False)
    alternate_course_1: Mapped[str | None] = mapped_column(String(150), nullable=True)
    alternate_course_2: Mapped[str | None] = mapped_column(String(150), nullable=True)

    # Status tracking
    applicant_status: Mapped[ApplicantStatus] = mapped_column(
        Enum(ApplicantStatus, name="applicant_status", values_callable=_enum_values),
        nullable=False,
        default=ApplicantStatus.PENDING,
        server_default=ApplicantStatus.PENDING.value,
    )
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Audit timestamps
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_applicants_email", "email"),
        Index("ix_applicants_status", "applicant_status"),
        Index("ix_applicants_preferred_course", "preferred_course"),
        Index("ix_applicants_submitted_at", "submitted_at"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}"


class ApplicantDocument(Base):
    """
    An uploaded supporting document.

    Re-uploads add rows; the most recent upload of a type is the current one.
    """

    __tablename__ = "applicant_documents"

    upload_id: Mapped[str] = mapped_column(String(40), primary_key=True)
    admission_id: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("applicants.admission_id", ondelete="CASCADE"),
        nullable=False,
    )
    document_type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, name="document_type", values_callable=_enum_values),
        nullable=False,
    )

    # File metadata
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index(
            "ix_applicant_documents_admission_type_uploaded",
            "admission_id",
            "document_type",
            "uploaded_at",
        ),
    )


class ApplicantNotification(Base):
    """Record of a message sent to an applicant. Append-only."""

    __tablename__ = "applicant_notifications"

    notification_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    admission_id: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("applicants.admission_id", ondelete="CASCADE"),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type", values_callable=_enum_values),
        nullable=False,
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_applicant_notifications_admission_created", "admission_id", "created_at"),
    )


class EmailVerification(Base):
    """
    One-time code proving control of an email address.

    The unique constraint on email keeps at most one active challenge per address.
    """

    __tablename__ = "email_verifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    otp: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_email_verifications_expires_at", "expires_at"),)
