"""Concurrent side-table from host span handles to span records."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from tracehook.errors import IntegrationError
from tracehook.tracer.record import SpanRecord

Handle = int


class SpanStore:
    """
    Striped map of live span records.

    Handles are spread over ``shards`` independent dicts, each guarded by its
    own lock, so callbacks for different spans rarely contend. A lock is held
    for one operation only.
    """

    def __init__(self, shards: int = 16) -> None:
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._shards: List[Tuple[threading.Lock, Dict[Handle, SpanRecord]]] = [
            (threading.Lock(), {}) for _ in range(shards)
        ]

    def _shard(self, handle: Handle) -> Tuple[threading.Lock, Dict[Handle, SpanRecord]]:
        return self._shards[hash(handle) % len(self._shards)]

    def insert(self, handle: Handle, record: SpanRecord) -> None:
        lock, records = self._shard(handle)
        with lock:
            if handle in records:
                raise IntegrationError(
                    "Span handle already has a live record",
                    {"handle": handle, "name": records[handle].name},
                )
            records[handle] = record

    @contextmanager
    def locked(self, handle: Handle) -> Iterator[Optional[SpanRecord]]:
        """Hold the handle's slot while the caller mutates its record."""
        lock, records = self._shard(handle)
        with lock:
            yield records.get(handle)

    def remove(self, handle: Handle) -> Optional[SpanRecord]:
        lock, records = self._shard(handle)
        with lock:
            return records.pop(handle, None)

    def __len__(self) -> int:
        total = 0
        for lock, records in self._shards:
            with lock:
                total += len(records)
        return total
