"""Trace and span identifier generation.

Each worker thread owns its own pseudo-random generator, seeded once from
the operating system's secure entropy source the first time that thread
creates an identifier. Generation never takes a lock and never blocks.
A forked child discards every inherited generator and reseeds on first use,
so pre-fork workers never repeat their parent's ids.
"""

from __future__ import annotations

import os
import random
import threading
from typing import NewType, Optional

from opentelemetry.sdk.trace.id_generator import IdGenerator

from tracehook.errors import EntropyError

TraceId = NewType("TraceId", int)
SpanId = NewType("SpanId", int)

TRACE_ID_BITS = 128
SPAN_ID_BITS = 64

_SEED_BYTES = 32

_fork_generation = 0


def _after_fork_in_child() -> None:
    global _fork_generation
    _fork_generation += 1


if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_after_fork_in_child)


class ThreadLocalIdGenerator(IdGenerator):
    """
    Uniform 128-bit trace ids and 64-bit span ids from per-thread generators.

    Ids are unique within the process with overwhelming probability rather
    than by construction. Zero is never returned since it marks an absent id
    on the wire.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def _rng(self) -> random.Random:
        rng: Optional[random.Random] = getattr(self._local, "rng", None)
        if rng is None or getattr(self._local, "generation", None) != _fork_generation:
            try:
                seed = os.urandom(_SEED_BYTES)
            except (NotImplementedError, OSError) as exc:
                raise EntropyError(
                    "Unable to seed identifier generator from system entropy",
                    {"thread": threading.current_thread().name, "cause": exc},
                ) from exc
            rng = random.Random(seed)
            self._local.rng = rng
            self._local.generation = _fork_generation
        return rng

    def generate_trace_id(self) -> TraceId:
        rng = self._rng()
        value = 0
        while value == 0:
            value = rng.getrandbits(TRACE_ID_BITS)
        return TraceId(value)

    def generate_span_id(self) -> SpanId:
        rng = self._rng()
        value = 0
        while value == 0:
            value = rng.getrandbits(SPAN_ID_BITS)
        return SpanId(value)
