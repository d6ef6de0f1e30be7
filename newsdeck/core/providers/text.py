"""
Text helpers for provider payloads.

Sources hand us HTML fragments (HN comment text, Reddit RSS content,
arXiv abstracts); these helpers reduce them to readable plain text.
"""

import re

from bs4 import BeautifulSoup

_BLOCK_TAGS = ["p", "br", "div", "li", "pre", "blockquote", "h1", "h2", "h3", "h4", "tr"]


def html_to_text(html: str | None) -> str:
    """
    Convert an HTML fragment into plain text.

    Block-level elements become line breaks; runs of blank lines collapse.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_before("\n")
    return clean_text(soup.get_text())


def clean_text(text: str) -> str:
    """Trim each line and drop empty ones."""
    lines = (re.sub(r"[ \t\xa0]+", " ", line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def collapse_ws(text: str) -> str:
    """Join all whitespace runs into single spaces."""
    return " ".join(text.split())


def truncate(text: str, max_len: int) -> str:
    """Truncate text to max_len characters, ending with an ellipsis."""
    if len(text) <= max_len:
        return text
    return text[: max(0, max_len - 3)] + "..."
