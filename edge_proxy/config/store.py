from abc import ABC, abstractmethod
import asyncio
import json
import logging
from typing import Any, Dict, Optional

from edge_proxy.errors import ConfigStoreError
from edge_proxy.vars import CONFIG_STORE, CONFIG_STORE_PATH

logger = logging.getLogger("uvicorn.error")


class ConfigStoreBase(ABC):
    """Read-only key/value access to server records and the global auth record."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass


def config_store(name: str = CONFIG_STORE) -> ConfigStoreBase:
    if name == "JsonFileConfigStore":
        return JsonFileConfigStore(CONFIG_STORE_PATH)
    if name == "InMemoryConfigStore":
        return InMemoryConfigStore()
    cls = globals().get(name)
    if isinstance(cls, type) and issubclass(cls, ConfigStoreBase):
        return cls()
    else:
        raise ValueError(f"Unknown config store type: {name}")


class InMemoryConfigStore(ConfigStoreBase):
    def __init__(self, records: Optional[Dict[str, Any]] = None):
        self._records: Dict[str, Any] = dict(records or {})

    async def get(self, key: str) -> Optional[Any]:
        return self._records.get(key)


class JsonFileConfigStore(ConfigStoreBase):
    """
    Records live in one JSON object keyed by server key. The file is read on
    every lookup so edits made by operators take effect on the next request.
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigStoreError(f"Failed to read config store {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigStoreError(
                f"Config store {self.path} must contain a JSON object at the top level"
            )
        return data

    async def get(self, key: str) -> Optional[Any]:
        data = await asyncio.to_thread(self._load)
        return data.get(key)
