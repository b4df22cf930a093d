"""
Business logic services.

Each service handles one step of the rename pipeline.
"""

from services.ocr_service import OcrService, get_ocr_service
from services.matching_service import find_best_match, find_unused_mappings
from services.image_metadata_service import read_image_metadata, classify_dimensions
from services.session_service import RenameSession, get_session
from services.item_state_machine import ItemStateMachine, get_item_state_machine
from services.pipeline_scheduler import PipelineScheduler, get_pipeline_scheduler
from services.archive_service import ArchiveService, get_archive_service, archive_path_for

__all__ = [
    "OcrService",
    "get_ocr_service",
    "find_best_match",
    "find_unused_mappings",
    "read_image_metadata",
    "classify_dimensions",
    "RenameSession",
    "get_session",
    "ItemStateMachine",
    "get_item_state_machine",
    "PipelineScheduler",
    "get_pipeline_scheduler",
    "ArchiveService",
    "get_archive_service",
    "archive_path_for",
]
