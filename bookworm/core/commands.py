from __future__ import annotations

READ_PAGE_COMMANDS = (
    "read this page",
    "scan this page",
    "read the page",
    "scan the page",
    "read the book",
    "scan the book",
    "capture the page",
    "take a picture",
    "read what you see",
    "what do you see",
    "analyze this page",
    "process this page",
)


def is_read_page_command(text: str) -> bool:
    """True when the utterance asks the assistant to capture and read a page."""
    lowered = (text or "").lower()
    return any(command in lowered for command in READ_PAGE_COMMANDS)
