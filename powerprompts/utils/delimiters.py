"""Helpers for the XML-style section tags used by structuring templates."""

import re

_TAG_PATTERN = re.compile(r"<(/?)([a-zA-Z_][a-zA-Z0-9_-]*)[^>]*?(/?)>")
_CLOSING_TAG_PATTERN = re.compile(r"</[^>]+>")


def wrap_tag(tag: str, content: str) -> str:
    """Wrap content in a tag, one line each for open tag, content and close tag."""
    return f"<{tag}>\n{content}\n</{tag}>"


def _section_pattern(tag: str) -> re.Pattern[str]:
    escaped = re.escape(tag)
    return re.compile(rf"<{escaped}>([\s\S]*?)</{escaped}>", re.IGNORECASE)


def find_section(text: str, tag: str) -> re.Match[str] | None:
    """Find the first complete ``<tag>...</tag>`` section."""
    return _section_pattern(tag).search(text)


def extract_tag(text: str, tag: str) -> str | None:
    """Return the stripped content of the first ``tag`` section, or None."""
    match = find_section(text, tag)
    if match is None or not match.group(1).strip():
        return None
    return match.group(1).strip()


def extract_all_tags(text: str, tag: str) -> list[str]:
    """Return the stripped contents of every ``tag`` section."""
    return [m.group(1).strip() for m in _section_pattern(tag).finditer(text) if m.group(1).strip()]


def has_tag(text: str, tag: str) -> bool:
    """Check whether a complete ``tag`` section exists."""
    return find_section(text, tag) is not None


def replace_tag(text: str, tag: str, content: str) -> str:
    """Replace the first ``tag`` section with new content."""
    return _section_pattern(tag).sub(lambda _: wrap_tag(tag, content), text, count=1)


def first_closing_tag_end(text: str) -> int | None:
    """Index just past the first closing tag, or None if there is none."""
    match = _CLOSING_TAG_PATTERN.search(text)
    return match.end() if match else None


def validate_xml(text: str) -> list[str]:
    """Check tag balance and return a list of problems.

    Unclosed tags are tolerated since model output often leaves the last
    section open; mismatched or orphan closing tags are reported.
    """
    errors: list[str] = []
    open_tags: list[str] = []
    for match in _TAG_PATTERN.finditer(text):
        is_closing, tag, self_closing = match.group(1), match.group(2), match.group(3)
        if self_closing:
            continue
        if not is_closing:
            open_tags.append(tag)
        elif not open_tags:
            errors.append(f"Unmatched closing tag: </{tag}> (no opening tag found)")
        elif open_tags[-1] != tag:
            errors.append(f"Mismatched closing tag: expected </{open_tags[-1]}>, got </{tag}>")
        else:
            open_tags.pop()
    return errors


def clean_xml(text: str) -> str:
    """Normalize whitespace between tags and collapse runs of blank lines."""
    text = re.sub(r">\s+<", ">\n<", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
