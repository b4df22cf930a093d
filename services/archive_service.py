"""
Archive service for packaging renamed images.

Builds an in-memory zip with one entry per completed item:

    <suggested_name>                                  (no provider)
    <provider>/<suggested_name>                       (standard size)
    <provider>/portrait/<suggested_name>              (500x693)
    <provider>/landscape/<suggested_name>             (500x333)

Packaging and processing exclude each other so the archive never mixes item
states from the middle of a run.
"""

import time
import zipfile
from dataclasses import dataclass
from io import BytesIO
from typing import Optional
import structlog

from exceptions import (
    ArchiveAssemblyError,
    ArchiveEmptyError,
    ItemNotCompletedError,
    SessionBusyError,
)
from models.item import ImageItem, ImageKind, ItemStatus
from services.session_service import RenameSession, get_session
from utils.text_utils import sanitize_filename

logger = structlog.get_logger(__name__)


PROVIDER_FALLBACK = "default_provider"

SUBFOLDERS = {
    ImageKind.PORTRAIT: "portrait/",
    ImageKind.LANDSCAPE: "landscape/",
}


@dataclass
class ArchiveFile:
    """A built archive ready to send."""
    filename: str
    content: bytes
    entry_count: int


def archive_path_for(item: ImageItem) -> str:
    """
    Path of a completed item inside the archive.

    Provider folders are sanitized and lower-cased; the orientation
    sub-folder is only used under a provider folder.
    """
    if not item.provider or not item.provider.strip():
        return item.suggested_name

    folder = sanitize_filename(item.provider, PROVIDER_FALLBACK).lower()
    subfolder = SUBFOLDERS.get(item.image_kind, "")
    return f"{folder}/{subfolder}{item.suggested_name}"


class ArchiveService:
    """Packages a session's completed items."""

    def __init__(self, session: RenameSession):
        self.session = session

    def build_archive(self) -> ArchiveFile:
        """
        Zip every completed item.

        Returns:
            ArchiveFile with a timestamped file name

        Raises:
            SessionBusyError: If processing or packaging is in progress
            ArchiveEmptyError: If no item is completed
            ArchiveAssemblyError: If writing the zip fails (items untouched)
        """
        session = self.session
        if session.is_busy:
            raise SessionBusyError("build the archive")

        session.start_error_message = None
        completed = session.completed_items()
        if not completed:
            error = ArchiveEmptyError()
            session.start_error_message = error.message
            raise error

        session.is_zipping = True
        try:
            # Later entries overwrite earlier ones with the same path
            entries: dict[str, bytes] = {}
            for item in completed:
                entries[archive_path_for(item)] = item.content

            buffer = BytesIO()
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for path, content in entries.items():
                    archive.writestr(path, content)
        except (zipfile.BadZipFile, OSError, ValueError) as e:
            logger.error("archive_assembly_failed", error=str(e))
            error = ArchiveAssemblyError(str(e))
            session.start_error_message = error.message
            raise error
        finally:
            session.is_zipping = False

        filename = f"renamed_images_{int(time.time() * 1000)}.zip"
        logger.info("archive_built", filename=filename, entries=len(entries))
        return ArchiveFile(filename=filename, content=buffer.getvalue(), entry_count=len(entries))

    def get_renamed_file(self, item_id: str) -> tuple[str, bytes, str]:
        """
        Single renamed file for download.

        Returns:
            (suggested_name, content, mime_type)

        Raises:
            ItemNotFoundError: If the item does not exist
            ItemNotCompletedError: If the item is not completed
        """
        item = self.session.get_item(item_id)
        if item.status != ItemStatus.COMPLETED or not item.suggested_name:
            raise ItemNotCompletedError(item_id, item.status.value)
        return item.suggested_name, item.content, item.mime_type


# Singleton instance
_archive_service: Optional[ArchiveService] = None


def get_archive_service() -> ArchiveService:
    """Get or create ArchiveService for the process-wide session."""
    global _archive_service
    session = get_session()
    if _archive_service is None or _archive_service.session is not session:
        _archive_service = ArchiveService(session)
    return _archive_service
