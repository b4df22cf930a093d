"""
Mapping table schemas.

A mapping entry ties a game name (as it appears on images or in filenames)
to the code used for the renamed file, plus an optional provider used for
archive folders.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import ConfigDict, Field

from models.base import BaseSchema


class MappingEntry(BaseSchema):
    """One row of the user's mapping table. Immutable once parsed."""

    model_config = ConfigDict(frozen=True)

    game_name: str = Field(..., min_length=1, description="Game name as listed in the table")
    code: str = Field(..., min_length=1, description="Game code used for the new file name")
    provider: Optional[str] = Field(None, description="Game provider (archive folder)")


@dataclass
class MappingParseResult:
    """Result of parsing pasted mapping text."""
    entries: list[MappingEntry] = field(default_factory=list)
    message: Optional[str] = None
    is_error: bool = False

    @property
    def has_entries(self) -> bool:
        """True if at least one valid entry was parsed."""
        return len(self.entries) > 0


class MappingPreviewResponse(BaseSchema):
    """Parse preview returned when mapping text is stored."""

    entries: list[MappingEntry]
    total: int
    message: Optional[str] = None
    is_error: bool = False
