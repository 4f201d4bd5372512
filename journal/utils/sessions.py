"""Forex session labels derived from clock time."""

from datetime import time

from journal.utils.constants import SESSION_WINDOWS


def _within(minute: int, start: int, end: int) -> bool:
    if start < end:
        return start <= minute < end
    # overnight wrap (Sydney)
    return minute >= start or minute < end


def session_for_time(value: time | None) -> str | None:
    """Session label for a clock time, overlaps joined with " & ".

    Returns "Closed" when no window covers the time and None when no time is given.
    """
    if value is None:
        return None
    minute = value.hour * 60 + value.minute
    active = [name for name, start, end in SESSION_WINDOWS if _within(minute, start, end)]
    if not active:
        return "Closed"
    return " & ".join(active)


def normalize_session(label: str | None) -> str | None:
    """Canonical spelling of a free-text session label ("new york" -> "New-York")."""
    if label is None:
        return None
    text = label.strip()
    if not text:
        return None
    parts = []
    for part in text.replace("/", "&").split("&"):
        word = " ".join(part.split()).lower().replace(" ", "-")
        if not word:
            continue
        parts.append("-".join(w.capitalize() for w in word.split("-")))
    return " & ".join(parts)
