"""
Unit tests for the archive service.

Run: pytest tests/unit/test_archive_service.py -v
"""

import zipfile
from io import BytesIO

import pytest

from exceptions import ArchiveEmptyError, ItemNotCompletedError, ItemNotFoundError, SessionBusyError
from models.item import ImageKind, ItemStatus
from services.archive_service import ArchiveService, archive_path_for
from tests.factories import ImageItemFactory


def read_entries(content: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(BytesIO(content)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


class TestArchivePath:
    """Tests for archive_path_for()"""

    def test_portrait_under_provider(self):
        item = ImageItemFactory.create_completed(
            suggested_name="bookofdead.webp",
            provider="Playtech",
            image_kind=ImageKind.PORTRAIT
        )

        assert archive_path_for(item) == "playtech/portrait/bookofdead.webp"

    def test_landscape_under_provider(self):
        item = ImageItemFactory.create_completed(
            suggested_name="starburst.webp",
            provider="NetEnt",
            image_kind=ImageKind.LANDSCAPE
        )

        assert archive_path_for(item) == "netent/landscape/starburst.webp"

    def test_standard_directly_under_provider(self):
        item = ImageItemFactory.create_completed(suggested_name="starburst.webp", provider="NetEnt")

        assert archive_path_for(item) == "netent/starburst.webp"

    def test_no_provider_at_root(self):
        item = ImageItemFactory.create_completed(
            suggested_name="aogs.webp",
            image_kind=ImageKind.PORTRAIT
        )

        assert archive_path_for(item) == "aogs.webp"

    def test_provider_is_sanitized(self):
        item = ImageItemFactory.create_completed(suggested_name="x.webp", provider="Red Tiger / Gaming")

        assert archive_path_for(item) == "red_tiger___gaming/x.webp"

    def test_unsafe_provider_falls_back(self):
        item = ImageItemFactory.create_completed(suggested_name="x.webp", provider="!!!")

        assert archive_path_for(item) == "default_provider/x.webp"


class TestBuildArchive:
    """Tests for ArchiveService.build_archive()"""

    def test_contains_completed_items_only(self, session):
        portrait = ImageItemFactory.create_completed(
            suggested_name="bookofdead.webp",
            provider="Playtech",
            image_kind=ImageKind.PORTRAIT,
            content=b"portrait-bytes"
        )
        rootless = ImageItemFactory.create_completed(suggested_name="aogs.webp", content=b"aogs-bytes")
        failed = ImageItemFactory.create(status=ItemStatus.ERROR, error_message="Game not found in mappings.")
        session.items = [portrait, rootless, failed]

        archive = ArchiveService(session).build_archive()

        entries = read_entries(archive.content)
        assert entries == {
            "playtech/portrait/bookofdead.webp": b"portrait-bytes",
            "aogs.webp": b"aogs-bytes",
        }
        assert archive.entry_count == 2
        assert archive.filename.startswith("renamed_images_")
        assert archive.filename.endswith(".zip")
        assert session.is_zipping is False

    def test_duplicate_paths_last_wins(self, session):
        first = ImageItemFactory.create_completed(suggested_name="starburst.webp", content=b"first")
        second = ImageItemFactory.create_completed(suggested_name="starburst.webp", content=b"second")
        session.items = [first, second]

        archive = ArchiveService(session).build_archive()

        assert read_entries(archive.content) == {"starburst.webp": b"second"}
        assert archive.entry_count == 1

    def test_empty_archive_refused(self, session):
        session.items = [ImageItemFactory.create()]

        with pytest.raises(ArchiveEmptyError):
            ArchiveService(session).build_archive()

        assert session.start_error_message.startswith("Download failed:")
        assert session.is_zipping is False

    def test_refused_while_running(self, session):
        session.items = [ImageItemFactory.create_completed()]
        session.is_running = True

        with pytest.raises(SessionBusyError):
            ArchiveService(session).build_archive()


class TestRenamedFile:
    """Tests for ArchiveService.get_renamed_file()"""

    def test_returns_suggested_name_and_bytes(self, session):
        item = ImageItemFactory.create_completed(
            suggested_name="starburst.webp",
            content=b"raw",
            mime_type="image/png"
        )
        session.items = [item]

        assert ArchiveService(session).get_renamed_file(item.id) == ("starburst.webp", b"raw", "image/png")

    def test_not_completed(self, session):
        item = ImageItemFactory.create()
        session.items = [item]

        with pytest.raises(ItemNotCompletedError):
            ArchiveService(session).get_renamed_file(item.id)

    def test_unknown_item(self, session):
        with pytest.raises(ItemNotFoundError):
            ArchiveService(session).get_renamed_file("missing")
