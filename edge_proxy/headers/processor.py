"""
Outbound header construction.

Incoming headers are handled as an ordered list of ``(name, value)`` pairs so
repeated headers and the original name casing survive. Names are compared in
lower case only for membership and lookups.
"""

import re
from typing import Iterable, List, Mapping, Optional, Set, Tuple, Union

from edge_proxy.models import AuthEntry

HeaderItems = List[Tuple[str, str]]
HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]

HEADER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9!#$%&'*+.^_`|~-]+$")
# Control characters other than tab
INVALID_VALUE_PATTERN = re.compile(r"[\x00-\x08\x0A-\x1F\x7F]")


def header_items(headers: HeaderSource) -> HeaderItems:
    """Normalize a mapping, a Starlette ``Headers`` or a pair list to pairs."""
    if hasattr(headers, "multi_items"):
        return list(headers.multi_items())
    if isinstance(headers, Mapping):
        return list(headers.items())
    return [(name, value) for name, value in headers]


def find_header_values(headers: HeaderSource, header_name: str) -> List[str]:
    search = header_name.lower()
    return [value for name, value in header_items(headers) if name.lower() == search]


def find_header_value(headers: HeaderSource, header_name: str) -> Optional[str]:
    """First value of ``header_name`` (case-insensitive), or None."""
    values = find_header_values(headers, header_name)
    return values[0] if values else None


def header_names_lowercase(headers: HeaderSource) -> List[str]:
    return [name.lower() for name, _ in header_items(headers)]


def is_valid_header_name(header_name: str) -> bool:
    if not isinstance(header_name, str) or not header_name.strip():
        return False
    return HEADER_NAME_PATTERN.match(header_name) is not None


def is_valid_header_value(header_value: str) -> bool:
    if not isinstance(header_value, str):
        return False
    return INVALID_VALUE_PATTERN.search(header_value) is None


def create_header_exclusion_set(*entry_lists: Iterable[AuthEntry]) -> Set[str]:
    return {entry.header.lower() for entries in entry_lists for entry in entries}


def headers_excluding(headers: HeaderSource, exclude: Set[str]) -> HeaderItems:
    return [(name, value) for name, value in header_items(headers) if name.lower() not in exclude]


def add_configured_headers(
    headers: HeaderItems, configured_headers: Optional[Mapping[str, str]]
) -> HeaderItems:
    """
    Append configured headers whose name is not already present.

    Client headers always win. A configured ``Authorization`` is only added
    when the client's own ``Authorization`` was stripped as an auth header.
    """
    if not configured_headers:
        return list(headers)
    result = list(headers)
    present = {name.lower() for name, _ in result}
    for name, value in configured_headers.items():
        if name.lower() not in present:
            result.append((name, value))
            present.add(name.lower())
    return result


def build_outbound_headers(
    incoming: HeaderSource,
    global_entries: Iterable[AuthEntry],
    server_entries: Iterable[AuthEntry],
    configured_headers: Optional[Mapping[str, str]] = None,
) -> HeaderItems:
    """
    Strip the headers of both auth tiers, then layer in configured defaults.

    Both tiers are stripped regardless of which one authorized the request.
    """
    exclude = create_header_exclusion_set(global_entries, server_entries)
    return add_configured_headers(headers_excluding(incoming, exclude), configured_headers)
