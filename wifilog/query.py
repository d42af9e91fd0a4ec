"""Read-only query path for presentation layers (CLI, menu bar, web views)."""

from datetime import date

from wifilog.db import ConnectionLog, Database


def get_connections(db: Database) -> list[dict]:
    """Return the full log as plain dicts, most recent day first."""
    return [entry.as_dict() for entry in db.list_connections()]


_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def _ordinal(n: int) -> str:
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    return f"{n}{_SUFFIXES.get(n % 10, 'th')}"


def format_connection(entry: ConnectionLog) -> str:
    """Render a row as e.g. ``FRI MAR 1ST — 08:01 TO 17:45``."""
    d = date.fromisoformat(entry.date)
    day = f"{d.strftime('%a %b')} {_ordinal(d.day)}".upper()
    return f"{day} — {entry.earliest} TO {entry.latest}"
