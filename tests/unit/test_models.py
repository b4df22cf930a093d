"""
Unit tests for shared schema behaviour.

Run: pytest tests/unit/test_models.py -v
"""

from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from models.item import ImageItem, ItemStatus
from models.mapping import MappingEntry


class TestBaseSchema:
    """Tests for BaseSchema configuration"""

    def test_strips_whitespace(self):
        entry = MappingEntry(game_name="  Starburst ", code=" starburst ")

        assert entry.game_name == "Starburst"
        assert entry.code == "starburst"

    def test_validates_on_assignment(self):
        item = ImageItem(id="1", original_name="a.png")

        with pytest.raises(ValidationError):
            item.status = "not-a-status"

        assert item.status == ItemStatus.QUEUED

    def test_plain_objects_not_accepted(self):
        source = SimpleNamespace(game_name="Starburst", code="starburst", provider=None)

        with pytest.raises(ValidationError):
            MappingEntry.model_validate(source)
