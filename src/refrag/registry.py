"""Named component registry with lazy imports and a no-argument instance cache.

Backends pull in heavy optional SDKs (faiss, qdrant-client, anthropic,
sentence-transformers), so a backend module is only imported when it is
first requested.
"""

from __future__ import annotations

import importlib
import logging
from typing import Generic, TypeVar

from refrag.errors import ConfigurationError

logger = logging.getLogger(__name__)

C = TypeVar("C")


class ComponentRegistry(Generic[C]):
    """Maps backend names to ``module:ClassName`` targets.

    Instances created without keyword arguments are cached per name, so
    repeated default lookups share one client. Any keyword argument
    bypasses the cache.
    """

    def __init__(self, kind: str, entries: dict[str, str], extras: dict[str, str] | None = None):
        self.kind = kind
        self._entries = dict(entries)
        self._extras = extras or {}
        self._cache: dict[str, C] = {}

    def create(self, name: str, **kwargs) -> C:
        key = name.lower()
        if not kwargs and key in self._cache:
            return self._cache[key]

        target = self._entries.get(key)
        if target is None:
            raise ConfigurationError(
                f"Unknown {self.kind} '{name}'. Available: {self.names()}"
            )

        module_path, cls_name = target.split(":")
        try:
            mod = importlib.import_module(module_path)
            # Backends import their SDK on construction.
            instance = getattr(mod, cls_name)(**kwargs)
        except ImportError as exc:
            hint = self._extras.get(key)
            install = f" Install with: pip install 'referee-rag[{hint}]'" if hint else ""
            raise ConfigurationError(
                f"{self.kind} '{key}' is not installed ({exc.name}).{install}"
            ) from exc

        if not kwargs:
            self._cache[key] = instance
        logger.debug("Created %s %s", self.kind, cls_name)
        return instance

    def names(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._cache.clear()
