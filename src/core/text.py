"""Markup-to-text helpers shared by the parsers and the normalizer."""

import re

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")

# Tags whose content is never visible text.
NOISE_TAGS: tuple[str, ...] = ("script", "style", "noscript", "iframe")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def html_to_text(html: str | None) -> str:
    """Strip tags (and script/style content) and collapse whitespace."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    return collapse_whitespace(soup.get_text(" "))


def clean_optional(value: str | None) -> str | None:
    """Collapse whitespace; empty strings become None."""
    if value is None:
        return None
    cleaned = collapse_whitespace(value)
    return cleaned or None
