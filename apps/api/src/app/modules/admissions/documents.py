"""
Document Registry

Records uploaded supporting documents against applicants. Re-uploading a
document type adds a new artifact; the latest one is the current document.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.storage import StoredFile, UploadRejectedError, save_upload, validate_upload
from app.modules.admissions import repository
from app.modules.admissions.errors import (
    ApplicationNotFoundError,
    DocumentNotFoundError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedMediaTypeError,
)
from app.modules.admissions.identifiers import new_upload_id
from app.modules.admissions.models import ApplicantDocument, DocumentType
from app.modules.admissions.schemas import DocumentDetailResponse, DocumentResponse

logger = logging.getLogger(__name__)

# Upload route slugs used by the first version of the API
DOCUMENT_TYPE_SLUGS: dict[str, DocumentType] = {
    "birth-certificate": DocumentType.BIRTH_CERTIFICATE,
    "diploma": DocumentType.FORM137,
    "tor": DocumentType.SHS_TRANSCRIPT,
    "2x2": DocumentType.PICTURE_2X2,
}


def resolve_document_type(value: str) -> DocumentType | None:
    """Map an enum value or a legacy slug to a DocumentType."""
    normalized = value.strip().lower()
    if normalized in DOCUMENT_TYPE_SLUGS:
        return DOCUMENT_TYPE_SLUGS[normalized]
    try:
        return DocumentType(normalized)
    except ValueError:
        return None


async def record_upload(
    db: AsyncSession,
    admission_id: str,
    document_type: DocumentType,
    stored_file: StoredFile,
) -> ApplicantDocument:
    """
    Store metadata for a file that has already been written.

    Raises:
        ApplicationNotFoundError: If the applicant does not exist
        StorageError: If the row could not be written
    """
    if not await repository.applicant_exists(db, admission_id):
        raise ApplicationNotFoundError(admission_id)

    try:
        document = await repository.create_document(
            db,
            upload_id=new_upload_id(),
            admission_id=admission_id,
            document_type=document_type,
            file_name=stored_file.file_name,
            original_name=stored_file.original_name,
            file_path=stored_file.file_path,
            file_size=stored_file.file_size,
            mime_type=stored_file.mime_type,
        )
    except IntegrityError as e:
        # Applicant removed between the check and the insert
        await db.rollback()
        logger.warning(f"Document insert rejected for {admission_id}: {e}")
        raise ApplicationNotFoundError(admission_id) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record document for {admission_id}: {e}")
        raise StorageError("Failed to record document") from e

    logger.info(
        f"Recorded {document_type.value} upload {document.upload_id} for applicant {admission_id}"
    )
    return document


async def upload_document(
    db: AsyncSession,
    admission_id: str,
    document_type: DocumentType,
    filename: str,
    content_type: str | None,
    data: bytes,
) -> ApplicantDocument:
    """
    Validate, store and record one uploaded file.

    Boundary checks run before the applicant lookup so rejected files never
    touch the database or the disk.

    Raises:
        UnsupportedMediaTypeError: If the file is not an allowed image or PDF
        PayloadTooLargeError: If the file exceeds the size ceiling
        ApplicationNotFoundError: If the applicant does not exist
        StorageError: If the file or its metadata could not be written
    """
    try:
        validate_upload(filename, content_type, len(data))
    except UploadRejectedError as e:
        logger.info(f"Upload rejected for {admission_id} ({filename}): {e.reason}")
        if e.reason == "payload_too_large":
            raise PayloadTooLargeError(e.message) from e
        raise UnsupportedMediaTypeError(e.message) from e

    if not await repository.applicant_exists(db, admission_id):
        raise ApplicationNotFoundError(admission_id)

    try:
        stored_file = await save_upload(
            data,
            original_name=filename,
            content_type=(content_type or "").lower(),
            prefix=document_type.value,
        )
    except OSError as e:
        logger.error(f"Failed to write upload for {admission_id}: {e}")
        raise StorageError("Failed to store file") from e

    return await record_upload(db, admission_id, document_type, stored_file)


async def list_documents(db: AsyncSession, admission_id: str) -> list[DocumentResponse]:
    """List all uploads for an applicant, most recent first."""
    if not await repository.applicant_exists(db, admission_id):
        raise ApplicationNotFoundError(admission_id)

    documents = await repository.list_documents(db, admission_id)
    return [DocumentResponse.model_validate(doc) for doc in documents]


async def get_current_document(
    db: AsyncSession,
    admission_id: str,
    document_type: DocumentType,
) -> ApplicantDocument:
    """
    Get the current (most recent) document of a type.

    Raises:
        DocumentNotFoundError: If nothing of that type was uploaded
    """
    document = await repository.get_current_document(db, admission_id, document_type)
    if document is None:
        raise DocumentNotFoundError(
            f"No {document_type.value} uploaded for applicant {admission_id}"
        )
    return document


async def get_document(db: AsyncSession, upload_id: str) -> DocumentDetailResponse:
    """
    Get a single document with the owning applicant's name.

    Documents whose applicant no longer exists are returned with
    ``orphaned`` set.
    """
    row = await repository.get_document_with_applicant(db, upload_id)
    if row is None:
        raise DocumentNotFoundError(f"Document {upload_id} not found")

    document, firstname, lastname = row
    orphaned = firstname is None and lastname is None
    if orphaned:
        logger.warning(f"Document {upload_id} references missing applicant {document.admission_id}")

    return DocumentDetailResponse(
        **DocumentResponse.model_validate(document).model_dump(),
        applicant_name=None if orphaned else f"{firstname} {lastname}",
        orphaned=orphaned,
    )
