"""
Image item schemas and status rules.

An item is one uploaded image moving through extraction and matching.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import BaseSchema


class ItemStatus(str, Enum):
    """Item processing status."""
    QUEUED = "queued"
    OCR_EXTRACTING = "ocr_extracting"
    NAME_MATCHING = "name_matching"
    COMPLETED = "completed"
    ERROR = "error"
    API_KEY_MISSING = "api_key_missing"
    MAPPING_PARSE_ERROR = "mapping_parse_error"


class ImageKind(str, Enum):
    """Orientation class derived from exact image dimensions."""
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    STANDARD = "standard"


# Statuses occupying the single OCR + matching slot
IN_FLIGHT_STATUSES = frozenset({ItemStatus.OCR_EXTRACTING, ItemStatus.NAME_MATCHING})

# Statuses that carry an error message
ERROR_STATUSES = frozenset({
    ItemStatus.ERROR,
    ItemStatus.API_KEY_MISSING,
    ItemStatus.MAPPING_PARSE_ERROR,
})

# Statuses re-queued by "start all"
RETRY_ELIGIBLE_STATUSES = frozenset({ItemStatus.QUEUED}) | ERROR_STATUSES

ALLOWED_TRANSITIONS: dict[ItemStatus, frozenset[ItemStatus]] = {
    ItemStatus.QUEUED: frozenset({
        ItemStatus.QUEUED,
        ItemStatus.OCR_EXTRACTING,
        ItemStatus.API_KEY_MISSING,
        ItemStatus.MAPPING_PARSE_ERROR,
    }),
    ItemStatus.OCR_EXTRACTING: frozenset({ItemStatus.NAME_MATCHING, ItemStatus.ERROR}),
    ItemStatus.NAME_MATCHING: frozenset({ItemStatus.COMPLETED, ItemStatus.ERROR}),
    ItemStatus.COMPLETED: frozenset({ItemStatus.QUEUED}),
    ItemStatus.ERROR: frozenset({ItemStatus.QUEUED}),
    ItemStatus.API_KEY_MISSING: frozenset({ItemStatus.QUEUED}),
    ItemStatus.MAPPING_PARSE_ERROR: frozenset({ItemStatus.QUEUED}),
}


def is_valid_status_transition(current: ItemStatus, new: ItemStatus) -> bool:
    """
    Check if status transition is valid.

    Rules:
    - Forward only through queued -> ocr_extracting -> name_matching
    - Blocked states are reachable only from queued
    - Every non in-flight state may go back to queued (retry)
    """
    return new in ALLOWED_TRANSITIONS[current]


class ImageItem(BaseSchema):
    """
    One uploaded image and its processing result.

    The raw bytes are kept in memory for OCR and packaging but never
    serialized.
    """

    id: str = Field(..., description="Item UUID, unique per upload")
    original_name: str = Field(..., min_length=1, description="Uploaded file name")
    mime_type: str = Field(default="image/webp", description="Uploaded content type")
    content: bytes = Field(default=b"", exclude=True, repr=False)

    status: ItemStatus = ItemStatus.QUEUED
    ocr_text: Optional[str] = None
    suggested_name: Optional[str] = None
    provider: Optional[str] = None
    error_message: Optional[str] = None

    width: Optional[int] = None
    height: Optional[int] = None
    image_kind: ImageKind = ImageKind.STANDARD

    @property
    def is_in_flight(self) -> bool:
        return self.status in IN_FLIGHT_STATUSES

    @property
    def is_retry_eligible(self) -> bool:
        return self.status in RETRY_ELIGIBLE_STATUSES


class SessionCounts(BaseSchema):
    """Per-status totals for the session snapshot."""

    total: int = 0
    pending: int = 0
    completed: int = 0
    failed: int = 0


class SessionResponse(BaseSchema):
    """Snapshot of the rename session."""

    items: list[ImageItem]
    counts: SessionCounts
    credential_set: bool
    mapping_count: int
    is_running: bool
    is_processing: bool
    is_zipping: bool
    mapping_parse_message: Optional[str] = None
    unused_mappings_message: Optional[str] = None
    start_error_message: Optional[str] = None


class CredentialUpdate(BaseSchema):
    """Set or clear the OCR credential."""

    api_key: Optional[str] = Field(None, description="OCR API key; blank clears it")


class MappingTextUpdate(BaseSchema):
    """Pasted tab-separated mapping text."""

    text: str = Field(default="", description="Tab-separated mapping table with header row")
