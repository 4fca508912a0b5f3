"""Paste pipeline: normalization, markup reduction, and placeholder tokens.

Bracketed-paste bodies are cleaned up before they reach the document. Large
or multi-line pastes are replaced by a short placeholder token that is
expanded back into the pasted content when the text is submitted.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_LINE_THRESHOLD = 1
DEFAULT_CHAR_THRESHOLD = 200
TAB_SPACES = "    "

# Ordered (pattern, replacement) rules; applied top to bottom, case-insensitive.
MARKUP_RULES: list[tuple[str, str]] = [
    (r"<br\s*/?>", "\n"),
    (r"</p>", "\n\n"),
    (r"<p[^>]*>", ""),
    (r"<li[^>]*>", "- "),
    (r"</li>", "\n"),
    (r"<h1[^>]*>", "# "),
    (r"</h1>", "\n\n"),
    (r"<h2[^>]*>", "## "),
    (r"</h2>", "\n\n"),
    (r"<h3[^>]*>", "### "),
    (r"</h3>", "\n\n"),
]

TAG_PATTERN = r"<[^>]+>"


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def markup_to_text(
    text: str,
    rules: list[tuple[str, str]] | None = None,
    tag_pattern: str = TAG_PATTERN,
) -> str:
    """Reduce HTML-ish markup to plain text.

    Line-break, paragraph, list and heading tags become line breaks and
    prefix markers, every remaining tag is stripped, then character entities
    are decoded. If a rule cannot be compiled the input is returned as is.
    """
    if rules is None:
        rules = MARKUP_RULES
    try:
        compiled = [(re.compile(pattern, re.IGNORECASE), repl) for pattern, repl in rules]
        tag_re = re.compile(tag_pattern)
    except re.error:
        logger.debug("Markup rules failed to compile; leaving paste unchanged", exc_info=True)
        return text

    result = text
    for regex, repl in compiled:
        result = regex.sub(repl, result)
    result = tag_re.sub("", result)
    return html.unescape(result)


def strip_control_characters(text: str) -> str:
    """Drop C0 control characters other than newline."""
    return "".join(ch for ch in text if ch == "\n" or ord(ch) >= 32)


def normalize_pasted_text(text: str) -> str:
    """Normalize line endings and, when markup is present, reduce it to text.

    Tabs become four spaces so every column of a line is measurable. Other
    control characters are dropped so pasted escape sequences cannot reach
    the terminal when the line is drawn.
    """
    if not text:
        return text
    normalized = normalize_line_endings(text)
    if "<" in normalized:
        normalized = markup_to_text(normalized)
    return strip_control_characters(normalized.replace("\t", TAB_SPACES))


def count_lines(text: str) -> int:
    return len(text.split("\n"))


def is_large_paste(
    text: str,
    line_threshold: int = DEFAULT_LINE_THRESHOLD,
    char_threshold: int = DEFAULT_CHAR_THRESHOLD,
) -> bool:
    """Return ``True`` when *text* should be inserted as a placeholder."""
    return count_lines(text) > line_threshold or len(text) > char_threshold


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_token(line_count: int, char_count: int, chunk: int) -> str:
    """Build a placeholder such as ``[text 3 lines · 42 chars · chunk #1]``."""
    return (
        f"[text {_plural(line_count, 'line')} · "
        f"{_plural(char_count, 'char')} · chunk #{chunk}]"
    )


@dataclass
class PasteRegistry:
    """Placeholder tokens minted for large pastes, keyed by token text."""

    token_counter: int = 1
    tokens: dict[str, str] = field(default_factory=dict)

    def register(self, content: str) -> str:
        """Mint a token for *content*, remember it, and return the token."""
        token = format_token(count_lines(content), len(content), self.token_counter)
        self.tokens[token] = content
        self.token_counter += 1
        logger.debug("Registered paste placeholder %s", token)
        return token

    def resolve(self, text: str) -> str:
        """Replace every registered token in *text* with its content.

        A single pass: substituted content is never scanned again, so token
        text that was itself pasted comes back literally.
        """
        if not self.tokens:
            return text
        alternatives = sorted(self.tokens, key=len, reverse=True)
        pattern = re.compile("|".join(re.escape(token) for token in alternatives))
        return pattern.sub(lambda m: self.tokens[m.group(0)], text)

    def resolve_lines(self, lines: list[str]) -> list[str]:
        return [self.resolve(line) for line in lines]

    def clear(self) -> None:
        self.tokens.clear()
        self.token_counter = 1
