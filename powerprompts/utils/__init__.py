"""Text helpers shared across the pipeline."""

from powerprompts.utils.delimiters import (
    clean_xml,
    extract_tag,
    find_section,
    first_closing_tag_end,
    has_tag,
    validate_xml,
    wrap_tag,
)
from powerprompts.utils.parsing import extract_json_array, parse_json_array, parse_score
from powerprompts.utils.validators import check_technique_compatibility

__all__ = [
    "check_technique_compatibility",
    "clean_xml",
    "extract_json_array",
    "extract_tag",
    "find_section",
    "first_closing_tag_end",
    "has_tag",
    "parse_json_array",
    "parse_score",
    "validate_xml",
    "wrap_tag",
]
