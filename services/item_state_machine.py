"""
Item state machine.

Governs one image's lifecycle:

    queued → ocr_extracting → name_matching → completed | error

api_key_missing and mapping_parse_error are blocked states entered from
queued when preconditions are unmet. Every non in-flight state can be
re-queued. Failures are recorded on the item; nothing here raises into the
scheduler for per-item problems.
"""

from typing import Optional, Sequence
import structlog

from config import settings
from exceptions import (
    AppError,
    InvalidCredentialError,
    InvalidStatusTransitionError,
    NoMatchFoundError,
    ValidationError,
)
from models.item import ERROR_STATUSES, ImageItem, ItemStatus, is_valid_status_transition
from models.mapping import MappingEntry
from services.matching_service import find_best_match
from services.ocr_service import NO_TEXT_DETECTED_MARKER, OcrService, get_ocr_service
from utils.text_utils import sanitize_filename

logger = structlog.get_logger(__name__)


OCR_FAILED_MARKER = "OCR_FAILED"

MSG_API_KEY_MISSING = "API key is missing. OCR skipped."
MSG_NO_MAPPINGS = "No valid mappings loaded. Cannot process."
MSG_OCR_FAILED = "Failed OCR extraction."
MSG_MATCH_FAILED = "Failed to process and match name."

RESULT_FIELDS = ("ocr_text", "suggested_name", "provider", "error_message")


class ItemStateMachine:
    """
    Applies guarded status transitions to image items.

    Only the target item's fields are touched.
    """

    def __init__(self, ocr_service: Optional[OcrService] = None):
        self.ocr = ocr_service or get_ocr_service()

    # ===================
    # TRANSITIONS
    # ===================

    def transition(self, item: ImageItem, new_status: ItemStatus, **fields) -> ImageItem:
        """
        Move an item to a new status, updating result fields.

        Raises:
            InvalidStatusTransitionError: If the move is not allowed
            ValidationError: If the target state's invariant would not hold
        """
        current = item.status
        if not is_valid_status_transition(current, new_status):
            raise InvalidStatusTransitionError(current.value, new_status.value)

        suggested_name = fields.get("suggested_name", item.suggested_name)
        error_message = fields.get("error_message", item.error_message)

        if new_status == ItemStatus.COMPLETED and not suggested_name:
            raise ValidationError(
                "Completed items require a suggested name",
                code="ITEM_INVARIANT_VIOLATED",
                details={"item_id": item.id, "status": new_status.value}
            )
        if new_status in ERROR_STATUSES and not error_message:
            raise ValidationError(
                "Error states require an error message",
                code="ITEM_INVARIANT_VIOLATED",
                details={"item_id": item.id, "status": new_status.value}
            )

        for name, value in fields.items():
            setattr(item, name, value)
        item.status = new_status

        logger.debug(
            "item_status_changed",
            item_id=item.id,
            from_status=current.value,
            to_status=new_status.value
        )
        return item

    def requeue(self, item: ImageItem) -> ImageItem:
        """Send an item back to queued, discarding its previous result."""
        return self.transition(item, ItemStatus.QUEUED, **{name: None for name in RESULT_FIELDS})

    def begin_extraction(
        self,
        item: ImageItem,
        credential: Optional[str],
        mappings: Sequence[MappingEntry]
    ) -> bool:
        """
        Enter extraction if preconditions hold, else park the item.

        Returns:
            True if the item is now ocr_extracting
        """
        if not credential:
            self.transition(item, ItemStatus.API_KEY_MISSING, error_message=MSG_API_KEY_MISSING)
            return False
        if not mappings:
            self.transition(item, ItemStatus.MAPPING_PARSE_ERROR, error_message=MSG_NO_MAPPINGS)
            return False

        self.transition(item, ItemStatus.OCR_EXTRACTING)
        return True

    def record_extraction_failure(self, item: ImageItem, message: Optional[str]) -> ImageItem:
        return self.transition(
            item,
            ItemStatus.ERROR,
            ocr_text=OCR_FAILED_MARKER,
            error_message=message or MSG_OCR_FAILED
        )

    def record_extraction_success(self, item: ImageItem, text: Optional[str]) -> ImageItem:
        return self.transition(
            item,
            ItemStatus.NAME_MATCHING,
            ocr_text=text or NO_TEXT_DETECTED_MARKER
        )

    def record_match(self, item: ImageItem, match: Optional[MappingEntry]) -> ImageItem:
        """Complete the item with the matched code, or fail it when nothing matched."""
        if match is None:
            return self.transition(
                item,
                ItemStatus.ERROR,
                error_message=NoMatchFoundError(item.original_name).message
            )

        suggested_name = f"{sanitize_filename(match.code, match.code)}{settings.output_extension}"
        return self.transition(
            item,
            ItemStatus.COMPLETED,
            suggested_name=suggested_name,
            provider=match.provider,
            error_message=None
        )

    # ===================
    # FULL RUN
    # ===================

    async def process(
        self,
        item: ImageItem,
        credential: Optional[str],
        mappings: Sequence[MappingEntry]
    ) -> ImageItem:
        """
        Run one queued item to a terminal state.

        Suspends only while waiting for the OCR service.
        """
        if not self.begin_extraction(item, credential, mappings):
            logger.warning("item_blocked", item_id=item.id, status=item.status.value)
            return item

        logger.info("item_processing_started", item_id=item.id, filename=item.original_name)

        try:
            text = await self.ocr.extract_text(credential, item.content, item.mime_type)
        except InvalidCredentialError as e:
            logger.error("item_ocr_credential_rejected", item_id=item.id)
            return self.record_extraction_failure(item, e.message)
        except AppError as e:
            logger.error("item_ocr_failed", item_id=item.id, error=e.message)
            return self.record_extraction_failure(item, e.message)
        except Exception as e:
            logger.error("item_ocr_failed", item_id=item.id, error=str(e), error_type=type(e).__name__)
            return self.record_extraction_failure(item, str(e))

        self.record_extraction_success(item, text)

        try:
            # Match on the raw OCR result, never the sentinel
            match = find_best_match(text, item.original_name, mappings)
            self.record_match(item, match)
        except Exception as e:
            logger.error("item_matching_failed", item_id=item.id, error=str(e))
            self.transition(item, ItemStatus.ERROR, error_message=str(e) or MSG_MATCH_FAILED)

        logger.info(
            "item_processing_finished",
            item_id=item.id,
            status=item.status.value,
            suggested_name=item.suggested_name
        )
        return item


# Singleton instance
_state_machine: Optional[ItemStateMachine] = None


def get_item_state_machine() -> ItemStateMachine:
    """Get or create ItemStateMachine instance."""
    global _state_machine
    if _state_machine is None:
        _state_machine = ItemStateMachine()
    return _state_machine
