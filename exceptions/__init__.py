"""
Custom exceptions module.

Batch errors are raised to callers; item errors are recorded on items.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,

    # Start preconditions
    CredentialMissingError,
    MappingMissingError,
    MappingInvalidError,
    NoEligibleItemsError,
    SessionBusyError,

    # Items
    ItemNotFoundError,
    InvalidStatusTransitionError,
    ItemNotCompletedError,
    ExtractionError,
    InvalidCredentialError,
    NoMatchFoundError,
    MetadataReadError,

    # Archive
    ArchiveEmptyError,
    ArchiveAssemblyError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",

    # Start preconditions
    "CredentialMissingError",
    "MappingMissingError",
    "MappingInvalidError",
    "NoEligibleItemsError",
    "SessionBusyError",

    # Items
    "ItemNotFoundError",
    "InvalidStatusTransitionError",
    "ItemNotCompletedError",
    "ExtractionError",
    "InvalidCredentialError",
    "NoMatchFoundError",
    "MetadataReadError",

    # Archive
    "ArchiveEmptyError",
    "ArchiveAssemblyError",
]
