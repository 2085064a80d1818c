"""
Per-instance locking for engines shared between threads.

The engines themselves are plain single-threaded objects. When one instance
is shared, ``SynchronizedEngine`` puts every call behind a single
``threading.Lock``. Each operation is O(k) in-memory work, so one coarse lock
per instance is enough.
"""

import threading
from typing import Any, Dict, Generic, Iterable, TypeVar

from probkit.core.base import ProbabilisticEngine

E = TypeVar("E", bound=ProbabilisticEngine)


class SynchronizedEngine(Generic[E]):
    """Engine wrapped in one lock; every forwarded method call holds it."""

    def __init__(self, engine: E) -> None:
        self._engine = engine
        self._lock = threading.Lock()

    @property
    def engine(self) -> E:
        """The wrapped engine. Access through it bypasses the lock."""
        return self._engine

    def insert(self, item: Any, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._engine.insert(item, *args, **kwargs)

    def insert_many(self, items: Iterable[Any]) -> int:
        # Materialize first so a slow generator does not hold the lock
        batch = list(items)
        with self._lock:
            return self._engine.insert_many(batch)

    def query(self, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return self._engine.query(*args, **kwargs)

    def configure(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._engine.configure(*args, **kwargs)

    def clear(self) -> None:
        with self._lock:
            self._engine.clear()

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return self._engine.get_stats()

    def __getattr__(self, name: str) -> Any:
        # Properties are evaluated while holding the lock
        with self._lock:
            attr = getattr(self._engine, name)
        if not callable(attr):
            return attr

        def locked(*args: Any, **kwargs: Any) -> Any:
            with self._lock:
                return attr(*args, **kwargs)

        return locked
