"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.mapping import (
    MappingEntry,
    MappingParseResult,
    MappingPreviewResponse,
)
from models.item import (
    ItemStatus,
    ImageKind,
    ImageItem,
    IN_FLIGHT_STATUSES,
    ERROR_STATUSES,
    RETRY_ELIGIBLE_STATUSES,
    is_valid_status_transition,
    SessionCounts,
    SessionResponse,
    CredentialUpdate,
    MappingTextUpdate,
)

__all__ = [
    # Base
    "BaseSchema",

    # Mapping
    "MappingEntry",
    "MappingParseResult",
    "MappingPreviewResponse",

    # Items
    "ItemStatus",
    "ImageKind",
    "ImageItem",
    "IN_FLIGHT_STATUSES",
    "ERROR_STATUSES",
    "RETRY_ELIGIBLE_STATUSES",
    "is_valid_status_transition",
    "SessionCounts",
    "SessionResponse",
    "CredentialUpdate",
    "MappingTextUpdate",
]
