"""Transaction import: text parsing, validation and submission."""
from .parser import DEFAULT_SCHEMA, Column, parse_line, parse_table
from .pipeline import ImportPipeline
from .validation import build_payload, validate_entry

__all__ = [
    "DEFAULT_SCHEMA",
    "Column",
    "ImportPipeline",
    "build_payload",
    "parse_line",
    "parse_table",
    "validate_entry",
]
