"""Strip unsafe markup from user-supplied document fields."""

import re

from knowledge.config import MAX_TITLE_LENGTH

_UNSAFE_CHARS = re.compile(r"[<>\"']")

# Non-greedy across nested tags: stop at the first matching close tag
_SCRIPT_BLOCK = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE
)
_IFRAME_BLOCK = re.compile(
    r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE
)
_JS_URI = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_title_or_tag(value: str, max_length: int = MAX_TITLE_LENGTH) -> str:
    """Drop quote and angle-bracket characters, trim, and cap the length."""
    return _UNSAFE_CHARS.sub("", value).strip()[:max_length]


def sanitize_content(content: str) -> str:
    """Remove script/iframe blocks, javascript: URIs and inline event handlers."""
    content = _SCRIPT_BLOCK.sub("", content)
    content = _IFRAME_BLOCK.sub("", content)
    content = _JS_URI.sub("", content)
    return _EVENT_HANDLER.sub("", content)


def sanitize_tags(tags: list[str]) -> list[str]:
    return [sanitize_title_or_tag(tag) for tag in tags]
