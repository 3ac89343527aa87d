"""
Two-tier authentication decision.

A tier with no entries imposes no requirement. Once a global policy is
configured, though, an empty per-server list does not open the request: a
request that fails the global tier must still match a per-server entry.
"""

from typing import Sequence

from edge_proxy.headers.processor import HeaderSource, find_header_values
from edge_proxy.models import AuthDecision, AuthEntry, AuthTier


def any_match(entries: Sequence[AuthEntry], headers: HeaderSource) -> bool:
    """
    True if any entry's header is present with exactly the expected value.
    Vacuously true for an empty list.
    """
    if not entries:
        return True
    return any(entry.value in find_header_values(headers, entry.header) for entry in entries)


def decide(
    headers: HeaderSource,
    global_entries: Sequence[AuthEntry],
    server_entries: Sequence[AuthEntry],
) -> AuthDecision:
    if not global_entries:
        if not server_entries:
            return AuthDecision(allowed=True, tier=AuthTier.NONE)
        if any_match(server_entries, headers):
            return AuthDecision(allowed=True, tier=AuthTier.SERVER)
        return AuthDecision(allowed=False)

    if any_match(global_entries, headers):
        return AuthDecision(allowed=True, tier=AuthTier.GLOBAL)

    if not server_entries:
        return AuthDecision(allowed=False)

    if any_match(server_entries, headers):
        return AuthDecision(allowed=True, tier=AuthTier.SERVER)
    return AuthDecision(allowed=False)
