"""Sampling decisions for traces.

Only the root span of a trace asks the sampler; descendants inherit the
root's decision. Samplers are called concurrently from every thread that
starts a root span, so stateful ones guard their own state.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

_UINT64_MASK = (1 << 64) - 1


class Sampler:
    """Head-based sampling capability."""

    def should_sample(self, trace_id: int) -> bool:
        raise NotImplementedError


class AlwaysOnSampler(Sampler):
    """Samples every trace. The default."""

    def should_sample(self, trace_id: int) -> bool:
        return True


class AlwaysOffSampler(Sampler):
    def should_sample(self, trace_id: int) -> bool:
        return False


class TraceIdRatioSampler(Sampler):
    """
    Samples a fixed fraction of traces, deterministically per trace id.

    The low 64 bits of the trace id are compared against ``rate * 2**64``,
    so the same trace id always gets the same answer.
    """

    def __init__(self, sample_rate: float = 1.0) -> None:
        if not 0.0 <= sample_rate <= 1.0:
            raise ValueError("sample_rate must be between 0.0 and 1.0")
        self.sample_rate = sample_rate
        self._bound = int(sample_rate * (_UINT64_MASK + 1))

    def should_sample(self, trace_id: int) -> bool:
        return (trace_id & _UINT64_MASK) < self._bound


class RateLimitingSampler(Sampler):
    """
    Token bucket limiting how many new traces per second are sampled.

    Never blocks: a root that finds the bucket empty is simply not sampled.
    """

    def __init__(
        self,
        max_traces_per_second: float,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if max_traces_per_second <= 0:
            raise ValueError("max_traces_per_second must be positive")
        self.max_traces_per_second = max_traces_per_second
        self._clock = clock or time.monotonic
        self._tokens: float = max_traces_per_second
        self._max_tokens: float = max_traces_per_second
        self._last_refill_time: float = self._clock()
        self._lock = threading.Lock()

    def should_sample(self, trace_id: int) -> bool:
        with self._lock:
            self._refill_tokens()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def _refill_tokens(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill_time
        if elapsed > 0:
            self._tokens = min(
                self._max_tokens,
                self._tokens + elapsed * self.max_traces_per_second,
            )
            self._last_refill_time = now


DEFAULT_SAMPLER = AlwaysOnSampler()
