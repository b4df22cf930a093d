"""
Rename session.

Holds everything one user works with: the OCR credential, the pasted
mapping text and its active parsed entries, the uploaded items and the
pipeline flags. Lives in memory for the life of the process; clear() is the
teardown.
"""

import mimetypes
import uuid
from typing import Iterable, Optional
import structlog

from config import settings
from exceptions import ItemNotFoundError, MetadataReadError
from models.item import (
    ERROR_STATUSES,
    IN_FLIGHT_STATUSES,
    ImageItem,
    ImageKind,
    ItemStatus,
    SessionCounts,
    SessionResponse,
)
from models.mapping import MappingEntry, MappingParseResult
from parsers.mapping_parser import parse_mapping_table
from services.image_metadata_service import read_image_metadata

logger = structlog.get_logger(__name__)


MSG_UPLOAD_NO_CREDENTIAL = "API Key is missing."
MSG_UNREADABLE_IMAGE = "Could not read image dimensions."
DEFAULT_MIME_TYPE = "image/webp"


def _clean_credential(credential: Optional[str]) -> Optional[str]:
    if credential and credential.strip():
        return credential.strip()
    return None


class RenameSession:
    """
    Session context passed to the scheduler and the API.

    Flags:
        is_running: the pipeline should keep picking queued items
        is_processing: an item is between extraction and its terminal state
        is_zipping: the archive is being assembled
    """

    def __init__(self, credential: Optional[str] = None):
        self.credential: Optional[str] = _clean_credential(credential)
        self.mapping_text: str = ""
        self.mappings: list[MappingEntry] = []
        self.items: list[ImageItem] = []

        self.is_running = False
        self.is_processing = False
        self.is_zipping = False

        self.mapping_parse_message: Optional[str] = None
        self.unused_mappings_message: Optional[str] = None
        self.start_error_message: Optional[str] = None

    @property
    def is_busy(self) -> bool:
        return self.is_running or self.is_processing or self.is_zipping

    # ===================
    # INPUTS
    # ===================

    def set_credential(self, credential: Optional[str]) -> list[ImageItem]:
        """
        Set the OCR credential; blank clears it.

        A non-blank key re-queues every api_key_missing item. The run flag
        is left alone, so nothing starts until processing is requested.

        Returns:
            Items moved back to queued
        """
        self.credential = _clean_credential(credential)

        requeued = []
        if self.credential:
            for item in self.items:
                if item.status == ItemStatus.API_KEY_MISSING:
                    item.error_message = None
                    item.status = ItemStatus.QUEUED
                    requeued.append(item)

        logger.info(
            "session_credential_updated",
            credential_set=self.credential is not None,
            requeued=len(requeued)
        )
        return requeued

    def set_mapping_text(self, text: str) -> MappingParseResult:
        """
        Store mapping text and return a parse preview.

        The active mapping set is only replaced when processing starts.
        """
        self.mapping_text = text or ""
        result = parse_mapping_table(self.mapping_text)
        self.mapping_parse_message = result.message
        return result

    def reparse_mappings(self) -> MappingParseResult:
        """Parse the stored text and replace the active mapping set wholesale."""
        result = parse_mapping_table(self.mapping_text)
        self.mappings = list(result.entries)
        self.mapping_parse_message = result.message
        return result

    def add_image(
        self,
        filename: str,
        content: bytes,
        mime_type: Optional[str] = None
    ) -> ImageItem:
        """
        Register one uploaded image.

        Unreadable images are still added, in error state, so they show up
        and can be retried.
        """
        mime_type = mime_type or mimetypes.guess_type(filename)[0] or DEFAULT_MIME_TYPE
        item = ImageItem(
            id=str(uuid.uuid4()),
            original_name=filename,
            mime_type=mime_type,
            content=content
        )

        try:
            metadata = read_image_metadata(content, filename)
            item.width = metadata.width
            item.height = metadata.height
            item.image_kind = metadata.image_kind
        except MetadataReadError:
            item.image_kind = ImageKind.STANDARD
            item.error_message = MSG_UNREADABLE_IMAGE
            item.status = ItemStatus.ERROR
        else:
            if not self.credential:
                item.error_message = MSG_UPLOAD_NO_CREDENTIAL
                item.status = ItemStatus.API_KEY_MISSING

        self.items.append(item)
        logger.info(
            "image_added",
            item_id=item.id,
            filename=filename,
            status=item.status.value,
            image_kind=item.image_kind.value
        )
        return item

    def add_images(self, files: Iterable[tuple[str, bytes, Optional[str]]]) -> list[ImageItem]:
        """Register several uploads in arrival order."""
        self.start_error_message = None
        self.unused_mappings_message = None
        return [self.add_image(name, content, mime) for name, content, mime in files]

    # ===================
    # QUERIES
    # ===================

    def get_item(self, item_id: str) -> ImageItem:
        """
        Get item by id.

        Raises:
            ItemNotFoundError: If no item has this id
        """
        for item in self.items:
            if item.id == item_id:
                return item
        raise ItemNotFoundError(item_id)

    def next_queued(self) -> Optional[ImageItem]:
        """First queued item in arrival order."""
        return next((item for item in self.items if item.status == ItemStatus.QUEUED), None)

    def eligible_items(self) -> list[ImageItem]:
        return [item for item in self.items if item.is_retry_eligible]

    def in_flight_items(self) -> list[ImageItem]:
        return [item for item in self.items if item.status in IN_FLIGHT_STATUSES]

    def completed_items(self) -> list[ImageItem]:
        return [
            item for item in self.items
            if item.status == ItemStatus.COMPLETED and item.suggested_name
        ]

    def counts(self) -> SessionCounts:
        pending = {ItemStatus.QUEUED} | IN_FLIGHT_STATUSES
        return SessionCounts(
            total=len(self.items),
            pending=sum(1 for item in self.items if item.status in pending),
            completed=sum(1 for item in self.items if item.status == ItemStatus.COMPLETED),
            failed=sum(1 for item in self.items if item.status in ERROR_STATUSES),
        )

    def snapshot(self) -> SessionResponse:
        return SessionResponse(
            items=list(self.items),
            counts=self.counts(),
            credential_set=self.credential is not None,
            mapping_count=len(self.mappings),
            is_running=self.is_running,
            is_processing=self.is_processing,
            is_zipping=self.is_zipping,
            mapping_parse_message=self.mapping_parse_message,
            unused_mappings_message=self.unused_mappings_message,
            start_error_message=self.start_error_message,
        )

    # ===================
    # TEARDOWN
    # ===================

    def clear(self) -> int:
        """Discard all items, flags and feedback messages. Returns the count removed."""
        removed = len(self.items)
        self.items = []
        self.is_running = False
        self.is_processing = False
        self.is_zipping = False
        self.mapping_parse_message = None
        self.unused_mappings_message = None
        self.start_error_message = None
        logger.info("session_cleared", removed=removed)
        return removed


# Singleton instance
_session: Optional[RenameSession] = None


def get_session() -> RenameSession:
    """Get or create the process-wide RenameSession."""
    global _session
    if _session is None:
        _session = RenameSession(credential=settings.anthropic_api_key)
    return _session


def reset_session() -> None:
    """Drop the session so the next get_session() builds a fresh one."""
    global _session
    _session = None
