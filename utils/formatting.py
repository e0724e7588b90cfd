"""
Text formatting utilities for schedule messages.
"""

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def truncate_text(text: str, max_len: int, marker: str = "...") -> str:
    """Cut text to max_len characters, ending with marker when cut

    Counts characters, not bytes, so Cyrillic or emoji text is never
    split in the middle of a character.

    Examples:
        truncate_text("hello", 10) -> "hello"
        truncate_text("hello world", 8) -> "hello..."

    Args:
        text: Text to shorten
        max_len: Maximum length of the result in characters
        marker: Tail appended when the text is cut

    Returns:
        Original text if short enough, otherwise the cut text with marker
    """
    if len(text) <= max_len:
        return text
    if max_len <= len(marker):
        return marker[:max_len]
    return text[:max_len - len(marker)] + marker


def format_hour_window(start_hour: int, end_hour: int) -> str:
    """Format an hour window as (HH:00 - HH:00)"""
    return f"({start_hour:02d}:00 - {end_hour:02d}:00)"


def weekday_name(weekday: int) -> str:
    """Display name for a weekday number (Monday = 0)"""
    return WEEKDAY_NAMES[int(weekday) % 7]
