"""
Admissions Service Errors

Every failure the admissions services raise carries a stable error code and
the HTTP status the API layer answers with.
"""


class ApplicationServiceError(Exception):
    """Base exception for admissions service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        """Error envelope returned to API clients."""
        return {
            "success": False,
            "error": self.error_code,
            "message": self.message,
        }


class ApplicantValidationError(ApplicationServiceError):
    """Raised when required applicant fields are missing or blank."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = missing_fields
        super().__init__(
            message=f"Missing required fields: {', '.join(missing_fields)}",
            error_code="VALIDATION_ERROR",
            status_code=400,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["missing_fields"] = self.missing_fields
        return data


class InvalidStatusError(ApplicationServiceError):
    """Raised when a status other than accepted or rejected is requested."""

    def __init__(self, value: str):
        super().__init__(
            message=f"Invalid status '{value}'. Allowed values: accepted, rejected",
            error_code="INVALID_STATUS",
            status_code=400,
        )


class ConflictError(ApplicationServiceError):
    """Raised when a write collides with existing state."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class AlreadyRegisteredError(ConflictError):
    """Raised when a verification code is requested for an email that already applied."""

    def __init__(self):
        super().__init__(
            message="This email is already registered.",
            error_code="EMAIL_ALREADY_REGISTERED",
        )


class StatusAlreadyFinalError(ConflictError):
    """Raised when re-deciding an application while status overrides are disabled."""

    def __init__(self, admission_id: str, current_status: str):
        super().__init__(
            message=f"Applicant {admission_id} is already {current_status}",
            error_code="STATUS_ALREADY_FINAL",
        )


class ApplicationNotFoundError(ApplicationServiceError):
    """Raised when an applicant is not found."""

    def __init__(self, admission_id: str | None = None):
        message = f"Applicant {admission_id} not found" if admission_id else "Applicant not found"
        super().__init__(
            message=message,
            error_code="APPLICANT_NOT_FOUND",
            status_code=404,
        )


class DocumentNotFoundError(ApplicationServiceError):
    """Raised when no document matches the lookup."""

    def __init__(self, message: str = "Document not found"):
        super().__init__(
            message=message,
            error_code="DOCUMENT_NOT_FOUND",
            status_code=404,
        )


class InvalidOrExpiredCodeError(ApplicationServiceError):
    """Raised when a verification code is wrong, superseded, used or expired."""

    def __init__(self):
        super().__init__(
            message="Invalid or expired verification code.",
            error_code="INVALID_OR_EXPIRED_CODE",
            status_code=400,
        )


class UnsupportedMediaTypeError(ApplicationServiceError):
    """Raised when an upload is not an allowed image or PDF."""

    def __init__(self, message: str = "Only .png, .jpg, .jpeg and .pdf format allowed!"):
        super().__init__(
            message=message,
            error_code="UNSUPPORTED_MEDIA_TYPE",
            status_code=415,
        )


class PayloadTooLargeError(ApplicationServiceError):
    """Raised when an upload exceeds the size ceiling."""

    def __init__(self, message: str = "File too large"):
        super().__init__(
            message=message,
            error_code="PAYLOAD_TOO_LARGE",
            status_code=413,
        )


class EmailDeliveryError(ApplicationServiceError):
    """Raised when the email provider fails on a call where delivery is the point."""

    def __init__(self, diagnostic: str | None = None):
        self.diagnostic = diagnostic
        super().__init__(
            message="Failed to send email",
            error_code="EMAIL_DELIVERY_FAILED",
            status_code=502,
        )


class StorageError(ApplicationServiceError):
    """Raised when a primary database write fails."""

    def __init__(self, message: str = "A database error occurred"):
        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            status_code=500,
        )


class InvalidDocumentTypeError(ApplicationServiceError):
    """Raised when an upload or lookup names an unknown document category."""

    def __init__(self, value: str):
        super().__init__(
            message=(
                f"Unknown document type '{value}'. Allowed values: birth_certificate, "
                "form137, shs_transcript, 2x2_picture"
            ),
            error_code="INVALID_DOCUMENT_TYPE",
            status_code=400,
        )
