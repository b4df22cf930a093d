"""
Custom exception classes for the application.

Batch-level errors (start preconditions, archive) surface to the caller.
Per-item errors are caught by the item state machine and recorded on the item.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "ITEM_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with current state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# START PRECONDITION ERRORS
# ===================

class CredentialMissingError(ValidationError):
    """No OCR credential configured."""

    def __init__(self):
        super().__init__(
            code="CREDENTIAL_MISSING",
            message="Cannot start processing: API Key is missing. OCR functionality requires it."
        )


class MappingMissingError(ValidationError):
    """Mapping text is blank."""

    def __init__(self):
        super().__init__(
            code="MAPPING_MISSING",
            message="Cannot start processing: Mapping data is empty. Please paste your game mappings."
        )


class MappingInvalidError(ValidationError):
    """Mapping text parsed to zero entries."""

    def __init__(self, detail: str):
        super().__init__(
            code="MAPPING_INVALID",
            message=f"Cannot start processing: No valid mapping entries found. {detail}",
            details={"parse_message": detail}
        )


class NoEligibleItemsError(ValidationError):
    """No item is queued or retry-eligible."""

    def __init__(self, has_items: bool):
        if has_items:
            message = "Cannot start processing: No images are currently pending or in an error state to reprocess."
        else:
            message = "Cannot start processing: No images have been uploaded."
        super().__init__(
            code="NO_ELIGIBLE_ITEMS",
            message=message,
            details={"has_items": has_items}
        )


class SessionBusyError(ConflictError):
    """Action not permitted while the pipeline or archive step is active."""

    def __init__(self, action: str):
        super().__init__(
            code="SESSION_BUSY",
            message=f"Cannot {action} while processing or packaging is in progress",
            details={"action": action}
        )


# ===================
# ITEM ERRORS
# ===================

class ItemNotFoundError(NotFoundError):
    """Image item not found in the session."""

    def __init__(self, item_id: str):
        super().__init__(
            resource="Item",
            identifier=item_id,
            code="ITEM_NOT_FOUND"
        )


class InvalidStatusTransitionError(ValidationError):
    """Invalid item status transition."""

    def __init__(self, current_status: str, new_status: str):
        super().__init__(
            code="INVALID_STATUS_TRANSITION",
            message=f"Cannot transition from {current_status} to {new_status}",
            details={
                "current_status": current_status,
                "new_status": new_status
            }
        )


class ItemNotCompletedError(ConflictError):
    """Item has no renamed file yet."""

    def __init__(self, item_id: str, status: str):
        super().__init__(
            code="ITEM_NOT_COMPLETED",
            message="Item has not been renamed yet",
            details={"item_id": item_id, "status": status}
        )


class ExtractionError(ExternalServiceError):
    """OCR text extraction failed."""

    def __init__(
        self,
        message: str = "Failed to extract text using the OCR service.",
        code: str = "EXTRACTION_FAILED",
        details: Optional[dict] = None
    ):
        super().__init__(
            service="ocr",
            message=message,
            code=code,
            details=details
        )


class InvalidCredentialError(ExtractionError):
    """OCR service rejected the credential."""

    def __init__(self):
        super().__init__(
            message="Invalid API key for the OCR service. Please check the provided key.",
            code="INVALID_CREDENTIAL"
        )


class NoMatchFoundError(AppError):
    """No mapping entry matched the image."""

    def __init__(self, original_name: str):
        super().__init__(
            code="NO_MATCH_FOUND",
            message="Game not found in mappings.",
            status_code=422,
            details={"original_name": original_name}
        )


class MetadataReadError(ValidationError):
    """Uploaded file could not be read as an image."""

    def __init__(self, filename: str, reason: str):
        super().__init__(
            code="METADATA_READ_FAILED",
            message=f"Could not read image metadata for {filename}",
            details={"filename": filename, "reason": reason}
        )


# ===================
# ARCHIVE ERRORS
# ===================

class ArchiveEmptyError(ValidationError):
    """No completed items to package."""

    def __init__(self):
        super().__init__(
            code="ARCHIVE_EMPTY",
            message="Download failed: No successfully processed images are available to include in the ZIP."
        )


class ArchiveAssemblyError(AppError):
    """Zip assembly failed."""

    def __init__(self, reason: str):
        super().__init__(
            code="ARCHIVE_ASSEMBLY_FAILED",
            message="An unexpected error occurred while creating the ZIP file.",
            status_code=500,
            details={"reason": reason}
        )
