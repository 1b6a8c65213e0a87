"""
Fixtures for admissions tests.
"""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.email import TransportError
from app.modules.admissions.models import (
    Applicant,
    ApplicantDocument,
    ApplicantStatus,
    DocumentType,
)
from app.modules.admissions.schemas import ApplicantCreate


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def sample_applicant_create():
    """A complete application form."""
    return ApplicantCreate(
        lastname="Dela Cruz",
        firstname="Juan",
        middlename="Santos",
        birth_date=date(2006, 5, 14),
        age=18,
        birth_place="Quezon City",
        gender="Male",
        citizenship="Filipino",
        civil_status="Single",
        street="123 Mabini St",
        barangay="San Roque",
        municipality="Marikina",
        province="Metro Manila",
        mobile_number="09171234567",
        email="Juan.DelaCruz@Example.com",
        last_school_attended="Marikina Science High School",
        strand_taken="STEM",
        school_type="Public",
        year_graduated=2024,
        father_name="Pedro Dela Cruz",
        mother_name="Maria Dela Cruz",
        parent_number="09181234567",
        family_income="20,000-30,000",
        preferred_course="BS-Computer Science",
        alternate_course_1="BS-Computer Engineering",
    )


def _make_applicant(admission_id: str, status: ApplicantStatus) -> Applicant:
    now = datetime.now(UTC)
    return Applicant(
        admission_id=admission_id,
        lastname="Dela Cruz",
        firstname="Juan",
        middlename=None,
        suffix=None,
        birth_date=date(2006, 5, 14),
        age=18,
        birth_place=None,
        gender="Male",
        citizenship=None,
        civil_status=None,
        religion=None,
        ethnicity=None,
        street=None,
        barangay=None,
        municipality=None,
        province=None,
        home_address=None,
        mobile_number="09171234567",
        email="juan.delacruz@example.com",
        last_school_attended=None,
        strand_taken=None,
        school_type=None,
        year_graduated=None,
        school_address=None,
        father_name=None,
        father_occupation=None,
        mother_name=None,
        mother_occupation=None,
        parent_number=None,
        family_income=None,
        preferred_course="BS-Computer Science",
        alternate_course_1=None,
        alternate_course_2=None,
        applicant_status=status,
        decided_at=None,
        submitted_at=now,
        updated_at=now,
    )


@pytest.fixture
def sample_applicant():
    """A pending applicant record."""
    return _make_applicant("ADM-7K2M9QXR4T1B", ApplicantStatus.PENDING)


@pytest.fixture
def accepted_applicant():
    """An applicant that has already been accepted."""
    applicant = _make_applicant("ADM-5H8J3N6P9R2S", ApplicantStatus.ACCEPTED)
    applicant.decided_at = datetime.now(UTC) - timedelta(days=1)
    return applicant


@pytest.fixture
def sample_document():
    """A stored birth certificate upload."""
    return ApplicantDocument(
        upload_id="UPL-1760000000000-a1b2c3d4",
        admission_id="ADM-7K2M9QXR4T1B",
        document_type=DocumentType.BIRTH_CERTIFICATE,
        file_name="birth_certificate-1760000000000-12345.pdf",
        original_name="psa.pdf",
        file_path="uploads/documents/birth_certificate-1760000000000-12345.pdf",
        file_size=2 * 1024 * 1024,
        mime_type="application/pdf",
        uploaded_at=datetime.now(UTC),
    )


@pytest.fixture
def failing_send_email():
    """send_email replacement that always fails at the transport."""
    return AsyncMock(
        side_effect=TransportError(
            "Email provider rejected the message",
            provider="resend",
            diagnostic="domain not verified",
        )
    )
