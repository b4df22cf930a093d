"""
Input parsers module.
"""

from parsers.mapping_parser import parse_mapping_table

__all__ = [
    "parse_mapping_table",
]
