"""Hidden-product registry consulted before candidates are scored."""
from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

Loader = Callable[[], frozenset[str]]


def load_hidden_skus(path: str | Path) -> frozenset[str]:
    """Read hidden SKUs from a JSON list, a ``{"skus": [...]}`` object, or plain lines."""

    file_path = Path(path)
    if not file_path.exists():
        logger.warning("Hidden SKU file %s is missing; nothing is hidden", file_path)
        return frozenset()
    with file_path.open("r", encoding="utf-8") as fh:
        content = fh.read()
    if file_path.suffix.lower() == ".json":
        data = json.loads(content)
        if isinstance(data, dict):
            data = data.get("skus", [])
        return frozenset(str(sku).strip() for sku in data if str(sku).strip())
    return frozenset(line.strip() for line in content.splitlines() if line.strip())


class HiddenSkuRegistry:
    """Time-bounded cache around a hidden-SKU loader.

    The loader runs at most once per ``ttl_seconds`` (measured with ``clock``);
    :meth:`invalidate` forces the next :meth:`get` to reload.
    """

    def __init__(
        self,
        loader: Loader,
        ttl_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._skus: frozenset[str] | None = None
        self._fetched_at = 0.0

    def get(self) -> frozenset[str]:
        with self._lock:
            now = self._clock()
            if self._skus is None or now - self._fetched_at >= self._ttl:
                self._fetched_at = now
                try:
                    self._skus = frozenset(self._loader())
                except (OSError, ValueError, TypeError) as exc:
                    logger.warning("Could not load hidden SKUs, keeping previous list: %s", exc)
                    if self._skus is None:
                        self._skus = frozenset()
                else:
                    logger.info("Loaded %s hidden SKUs", len(self._skus))
            return self._skus

    def invalidate(self) -> None:
        with self._lock:
            self._skus = None

    @classmethod
    def from_path(cls, path: str, ttl_seconds: float = 60) -> "HiddenSkuRegistry":
        if not path:
            return cls(frozenset, ttl_seconds)
        return cls(lambda: load_hidden_skus(path), ttl_seconds)
