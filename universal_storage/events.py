"""Observe storage operations by wrapping the facade."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .errors import StorageError
from .storage import UniversalStorage


LOGGER = logging.getLogger(__name__)


class EventKind(str):
    BEFORE = "before"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StorageEvent:
    kind: str
    operation: str
    outcome: Any = None
    error: Optional[StorageError] = None


StorageListener = Callable[[StorageEvent], None]


class ObservedStorage:
    """Notify listeners before and after each operation of a ``UniversalStorage``.

    Listener failures are logged and never change the outcome of the wrapped
    call. Storage errors are re-raised after the ``error`` event.
    """

    def __init__(self, storage: UniversalStorage) -> None:
        self.storage = storage
        self._listeners: List[StorageListener] = []

    def register_listener(self, listener: StorageListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StorageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: StorageEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Storage listener failed on %s/%s", event.operation, event.kind)

    def _call(self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        self._notify(StorageEvent(EventKind.BEFORE, operation))
        try:
            result = func(*args, **kwargs)
        except StorageError as exc:
            self._notify(StorageEvent(EventKind.ERROR, operation, error=exc))
            raise
        self._notify(StorageEvent(EventKind.SUCCESS, operation, outcome=result))
        return result

    def store_file(self, *args: Any, **kwargs: Any):
        return self._call("store_file", self.storage.store_file, *args, **kwargs)

    def remove_file(self, path: str):
        return self._call("remove_file", self.storage.remove_file, path)

    def create_folder(self, path: str):
        return self._call("create_folder", self.storage.create_folder, path)

    def remove_folder(self, path: str):
        return self._call("remove_folder", self.storage.remove_folder, path)

    def retrieve_file(self, path: str):
        return self._call("retrieve_file", self.storage.retrieve_file, path)

    def retrieve_file_as_stream(self, path: str):
        return self._call("retrieve_file_as_stream", self.storage.retrieve_file_as_stream, path)

    def clean(self) -> None:
        self._call("clean", self.storage.clean)
