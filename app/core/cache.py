from typing import Any, Callable, Dict, Tuple
import threading
import time

from cachetools import TTLCache

from app.core.config import settings

# Seconds each namespace keeps an entry
CACHE_STRATEGY: Dict[str, int] = {
    "default": 120,
    "users": 300,
    "courses": 180,
    "enrollments": 120,
    "analytics": 60,
    "progress": 30,
    "dashboard-stats": 60,
}

# Namespaces dropped after each kind of write
CACHE_INVALIDATION: Dict[str, Tuple[str, ...]] = {
    "user_update": ("users", "enrollments", "analytics", "dashboard-stats"),
    "course_update": ("courses", "enrollments", "analytics", "dashboard-stats"),
    "enrollment_update": ("enrollments", "courses", "analytics", "dashboard-stats"),
    "progress_update": ("progress", "courses", "analytics", "dashboard-stats"),
}

NAMESPACE_MAXSIZE = 1000

_MISSING = object()


class ResponseCache:
    """Process-wide cache of computed figures, one ``TTLCache`` per namespace."""

    def __init__(self, maxsize: int = NAMESPACE_MAXSIZE, timer: Callable[[], float] = time.monotonic):
        self._maxsize = maxsize
        self._timer = timer
        self._namespaces: Dict[str, TTLCache] = {}
        self._lock = threading.Lock()

    def _namespace(self, namespace: str) -> TTLCache:
        store = self._namespaces.get(namespace)
        if store is None:
            ttl = CACHE_STRATEGY.get(namespace, CACHE_STRATEGY["default"])
            store = TTLCache(maxsize=self._maxsize, ttl=ttl, timer=self._timer)
            self._namespaces[namespace] = store
        return store

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        with self._lock:
            store = self._namespaces.get(namespace)
            if store is None:
                return default
            return store.get(key, default)

    def set(self, namespace: str, key: str, value: Any) -> None:
        if not settings.CACHE_ENABLED:
            return
        with self._lock:
            self._namespace(namespace)[key] = value

    def get_or_set(self, namespace: str, key: str, loader: Callable[[], Any]) -> Any:
        value = self.get(namespace, key, _MISSING)
        if value is _MISSING:
            value = loader()
            self.set(namespace, key, value)
        return value

    def invalidate(self, *namespaces: str) -> None:
        with self._lock:
            for namespace in namespaces:
                self._namespaces.pop(namespace, None)

    def invalidate_for(self, event: str) -> None:
        """Drop every namespace tied to a write event such as ``course_update``."""
        self.invalidate(*CACHE_INVALIDATION.get(event, ()))

    def clear(self) -> None:
        with self._lock:
            self._namespaces.clear()


cache = ResponseCache()
