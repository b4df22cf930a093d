"""
Pipeline scheduler.

Drives queued items through the item state machine one at a time. A single
consumer task runs while the session's run flag is set: it takes the first
queued item in arrival order, processes it to a terminal state, then looks
again. When nothing is queued it lowers the run flag and exits.

Only one item is ever between extraction and its terminal state. This keeps
the OCR API from being burst with requests. The guard is the session's
is_processing flag plus the single consumer task; everything runs on one
event loop, so no locks are involved.
"""

import asyncio
from typing import Optional
import structlog

from exceptions import (
    AppError,
    CredentialMissingError,
    MappingInvalidError,
    MappingMissingError,
    NoEligibleItemsError,
    SessionBusyError,
)
from models.item import ImageItem, ItemStatus
from models.mapping import MappingParseResult
from services.item_state_machine import ItemStateMachine, get_item_state_machine
from services.matching_service import find_unused_mappings, format_unused_mappings_message
from services.session_service import RenameSession, get_session

logger = structlog.get_logger(__name__)


MSG_DEFAULT_MAPPING_HINT = (
    "Please check mapping data format, ensure headers ('Name', 'IMS Game Code') "
    "are correct and data exists under them."
)


class PipelineScheduler:
    """
    Single-flight processing loop over a RenameSession.

    start_all(), retry() and clear() are the only entry points that change
    the run flag or the item list outside the loop itself.
    """

    def __init__(
        self,
        session: RenameSession,
        state_machine: Optional[ItemStateMachine] = None
    ):
        self.session = session
        self.state_machine = state_machine or get_item_state_machine()
        self._consumer: Optional[asyncio.Task] = None

    # ===================
    # CONTROL
    # ===================

    def start_all(self) -> list[ImageItem]:
        """
        Re-queue every eligible item and start the pipeline.

        Must be called from within a running event loop.

        Returns:
            Items that were queued for this run

        Raises:
            SessionBusyError: If a run or packaging is already in progress
            CredentialMissingError: If no OCR credential is set
            MappingMissingError: If the mapping text is blank
            MappingInvalidError: If the mapping text yields no entries
            NoEligibleItemsError: If nothing is queued or retry-eligible
        """
        session = self.session
        if session.is_busy:
            raise SessionBusyError("start processing")

        session.start_error_message = None
        session.unused_mappings_message = None

        parse_result = session.reparse_mappings()
        if parse_result.has_entries and session.items:
            unused = find_unused_mappings(
                [item.original_name for item in session.items],
                parse_result.entries
            )
            session.unused_mappings_message = format_unused_mappings_message(unused)

        try:
            eligible = self._check_start_preconditions(parse_result)
        except AppError as e:
            session.start_error_message = e.message
            logger.warning("pipeline_start_refused", code=e.code, message=e.message)
            raise

        for item in eligible:
            self.state_machine.requeue(item)

        session.is_running = True
        logger.info(
            "pipeline_start_requested",
            queued=len(eligible),
            mappings=len(session.mappings)
        )
        self._ensure_consumer()
        return eligible

    def _check_start_preconditions(self, parse_result: MappingParseResult) -> list[ImageItem]:
        session = self.session

        if not session.credential:
            raise CredentialMissingError()

        if not session.mapping_text.strip():
            raise MappingMissingError()

        if not parse_result.has_entries:
            detail = parse_result.message if parse_result.is_error else MSG_DEFAULT_MAPPING_HINT
            raise MappingInvalidError(detail)

        eligible = session.eligible_items()
        if not eligible:
            raise NoEligibleItemsError(has_items=bool(session.items))

        return eligible

    def retry(self, item_id: str) -> ImageItem:
        """
        Re-queue one item; start the pipeline if it is idle.

        Raises:
            ItemNotFoundError: If the item does not exist
            InvalidStatusTransitionError: If the item is in flight
            SessionBusyError: If the archive is being assembled
        """
        session = self.session
        if session.is_zipping:
            raise SessionBusyError("retry an item")

        item = session.get_item(item_id)
        self.state_machine.requeue(item)
        logger.info("item_retry_requested", item_id=item_id)

        session.start_error_message = None
        session.is_running = True
        self._ensure_consumer()
        return item

    def clear(self) -> int:
        """
        Discard all items.

        Raises:
            SessionBusyError: If a run or packaging is in progress
        """
        if self.session.is_busy:
            raise SessionBusyError("clear the session")
        return self.session.clear()

    # ===================
    # CONSUMER
    # ===================

    @property
    def is_consumer_alive(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def _ensure_consumer(self) -> None:
        """Start the consumer task unless one is already running."""
        if self.is_consumer_alive:
            return
        self._consumer = asyncio.get_running_loop().create_task(self._run())

    async def wait_idle(self) -> None:
        """Wait until the current consumer (if any) has exited."""
        while self.is_consumer_alive:
            await asyncio.shield(self._consumer)

    async def _run(self) -> None:
        session = self.session
        processed = 0
        logger.info("pipeline_consumer_started")

        while session.is_running:
            item = session.next_queued()
            if item is None:
                session.is_running = False
                break

            session.is_processing = True
            try:
                await self.state_machine.process(item, session.credential, session.mappings)
            except Exception as e:
                logger.error(
                    "pipeline_item_crashed",
                    item_id=item.id,
                    error=str(e),
                    error_type=type(e).__name__
                )
                if item.is_in_flight:
                    self.state_machine.transition(
                        item,
                        ItemStatus.ERROR,
                        error_message=str(e) or "Unexpected processing failure."
                    )
            finally:
                session.is_processing = False
            processed += 1

        logger.info("pipeline_idle", processed=processed)


# Singleton instance
_scheduler: Optional[PipelineScheduler] = None


def get_pipeline_scheduler() -> PipelineScheduler:
    """Get or create the PipelineScheduler for the process-wide session."""
    global _scheduler
    session = get_session()
    if _scheduler is None or _scheduler.session is not session:
        _scheduler = PipelineScheduler(session)
    return _scheduler
