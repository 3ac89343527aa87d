from typing import List

from edge_proxy.models import AuthEntry, ServerConfig


def merge_auth_entries(config: ServerConfig) -> List[AuthEntry]:
    """
    Fold the legacy ``auth``/``authHeader`` pair into the modern entry list.

    Modern entries keep their order. The legacy entry is appended under its
    effective header name unless a modern entry already uses that name
    (case-insensitive), in which case it is dropped entirely.
    """
    merged = list(config.auth_entries or [])

    if config.legacy_auth_value is None:
        return merged

    legacy_header = config.effective_legacy_header
    taken = {entry.header.lower() for entry in merged}
    if legacy_header.lower() not in taken:
        merged.append(AuthEntry(header=legacy_header, value=config.legacy_auth_value))

    return merged
