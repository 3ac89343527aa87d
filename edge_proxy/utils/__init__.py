from typing import Iterable

from edge_proxy.models import AuthEntry


def header_names(entries: Iterable[AuthEntry]) -> str:
    """Comma separated header names for logs. Expected values never appear."""
    return ", ".join(entry.header for entry in entries) or "<none>"
