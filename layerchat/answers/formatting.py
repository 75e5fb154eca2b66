from typing import Optional
import re

from layerchat.schemas.chat import OutputMode

TAG_PATTERN = re.compile(r"</?(CONCISE|EXPLANATION)>", re.IGNORECASE)
_OPEN_CONCISE = re.compile(r"<CONCISE>", re.IGNORECASE)
_CLOSE_CONCISE = re.compile(r"</CONCISE>", re.IGNORECASE)
_BLANK_RUNS = re.compile(r"\n{3,}")
_TRAILING_SPACE = re.compile(r"[ \t]+\n")


def strip_tags(text: str) -> str:
    return TAG_PATTERN.sub("", text)


def normalize_whitespace(text: str) -> str:
    """Trim line ends, collapse blank-line runs to one, and trim the whole text."""
    text = text.replace("\r\n", "\n")
    text = _TRAILING_SPACE.sub("\n", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()


def display_preview(buffer: str, mode: Optional[OutputMode] = None) -> str:
    """
    Render a partial buffer for display while it is still streaming.

    Tag-based modes show the concise span as soon as it opens; every mode has
    its tags stripped and whitespace normalized.
    """
    portion = buffer
    if mode in (OutputMode.CONCISE_ONLY, OutputMode.DUAL):
        opening = _OPEN_CONCISE.search(buffer)
        if opening:
            closing = _CLOSE_CONCISE.search(buffer, opening.end())
            portion = buffer[opening.end():closing.start()] if closing else buffer[opening.end():]
    return normalize_whitespace(strip_tags(portion))
