from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from edge_proxy.vars import DEFAULT_AUTH_HEADER


class AuthEntry(BaseModel):
    """One required header and the exact value it must carry."""

    model_config = ConfigDict(frozen=True)

    header: str
    value: str


class ServerConfig(BaseModel):
    """
    A downstream server as stored in the configuration store.

    The wire format keeps the historical field names (``auth``, ``authHeader``,
    ``authConfigs``); the attributes use explicit legacy/modern names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str
    headers: Optional[Dict[str, str]] = None
    legacy_auth_value: Optional[str] = Field(default=None, alias="auth")
    legacy_auth_header: Optional[str] = Field(default=None, alias="authHeader")
    auth_entries: Optional[List[AuthEntry]] = Field(default=None, alias="authConfigs")

    @property
    def effective_legacy_header(self) -> str:
        return self.legacy_auth_header or DEFAULT_AUTH_HEADER


class AuthTier(str, Enum):
    GLOBAL = "global"
    SERVER = "server"
    NONE = "none"


@dataclass(frozen=True)
class AuthDecision:
    """A denial carries ``AuthTier.NONE``."""

    allowed: bool
    tier: AuthTier = AuthTier.NONE


@dataclass(frozen=True)
class RequestContext:
    server_key: str
    pathname: str
    original_url: str


@dataclass(frozen=True)
class ForwardPlan:
    """Everything the backend call needs once a request has been authorized."""

    server_key: str
    target_url: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    tier: AuthTier = AuthTier.NONE
