"""
Parser for pasted mapping tables.

Input is tab-separated text (as copied from a spreadsheet). The first line is
a header row; columns are located by name, case-insensitively:

    Name | IMS Game Code | Game Provider (optional)

Rows missing a name or code are skipped. Unknown columns are ignored.
"""

import csv
from io import StringIO
from typing import Optional
import structlog

import pandas as pd

from config import settings
from models.mapping import MappingEntry, MappingParseResult

logger = structlog.get_logger(__name__)


MSG_EMPTY = "Mapping data is empty. Paste your tab-separated table."
MSG_NO_VALID_ROWS = (
    "Mappings parsed, but no valid entries found after the header row. "
    "Check data values and ensure they are tab-separated under the correct headers."
)
MSG_NO_ENTRIES = (
    "No mapping entries found. Ensure data is present after the header row "
    "or check header names."
)


def _read_table(lines: list[str]) -> pd.DataFrame:
    """Read ragged tab-separated lines into an all-string frame."""
    width = max(line.count("\t") + 1 for line in lines)
    frame = pd.read_csv(
        StringIO("\n".join(lines)),
        sep="\t",
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=False,
        quoting=csv.QUOTE_NONE,
        engine="python",
    )
    return frame.fillna("")


def _cell(row: pd.Series, index: Optional[int]) -> str:
    if index is None:
        return ""
    return str(row.iloc[index]).strip()


def parse_mapping_table(
    text: Optional[str],
    game_name_column: Optional[str] = None,
    code_column: Optional[str] = None,
    provider_column: Optional[str] = None,
) -> MappingParseResult:
    """
    Parse tab-separated mapping text into mapping entries.

    Args:
        text: Raw pasted text, header row first
        game_name_column: Header of the name column (default from settings)
        code_column: Header of the code column (default from settings)
        provider_column: Header of the provider column (default from settings)

    Returns:
        MappingParseResult with entries and a user-facing feedback message.
        is_error is set when required headers are missing.
    """
    game_name_column = game_name_column or settings.mapping_col_game_name
    code_column = code_column or settings.mapping_col_code
    provider_column = provider_column or settings.mapping_col_provider

    if not text or not text.strip():
        return MappingParseResult(message=MSG_EMPTY)

    lines = text.strip().splitlines()
    frame = _read_table(lines)

    header = [str(cell).strip().lower() for cell in frame.iloc[0]]

    def find_column(name: str) -> Optional[int]:
        target = name.lower()
        return header.index(target) if target in header else None

    name_idx = find_column(game_name_column)
    code_idx = find_column(code_column)
    provider_idx = find_column(provider_column)

    if name_idx is None or code_idx is None:
        logger.warning(
            "mapping_headers_missing",
            header=header,
            expected=[game_name_column, code_column]
        )
        return MappingParseResult(
            message=(
                f"Error: Required columns missing. Ensure '{game_name_column}' and "
                f"'{code_column}' headers are present. Data should be tab-separated."
            ),
            is_error=True
        )

    entries: list[MappingEntry] = []
    skipped = 0

    for _, row in frame.iloc[1:].iterrows():
        game_name = _cell(row, name_idx)
        code = _cell(row, code_idx)
        provider = _cell(row, provider_idx)

        if not game_name or not code:
            skipped += 1
            continue

        entries.append(MappingEntry(
            game_name=game_name,
            code=code,
            provider=provider or None
        ))

    if entries:
        message = f"Successfully parsed {len(entries)} mapping entries."
    elif len(lines) > 1:
        message = MSG_NO_VALID_ROWS
    else:
        message = MSG_NO_ENTRIES

    logger.info(
        "mapping_table_parsed",
        entries=len(entries),
        skipped_rows=skipped,
        has_provider_column=provider_idx is not None
    )

    return MappingParseResult(entries=entries, message=message)
