"""Tests for trace and span id generation."""

import os
import threading

import pytest

from tracehook.errors import EntropyError
from tracehook.tracer import ids as ids_module
from tracehook.tracer.ids import ThreadLocalIdGenerator


def test_ids_fit_their_widths():
    generator = ThreadLocalIdGenerator()
    for _ in range(200):
        trace_id = generator.generate_trace_id()
        span_id = generator.generate_span_id()
        assert 0 < trace_id < (1 << 128)
        assert 0 < span_id < (1 << 64)


def test_ids_do_not_repeat():
    generator = ThreadLocalIdGenerator()
    span_ids = {generator.generate_span_id() for _ in range(10_000)}
    assert len(span_ids) == 10_000


def test_each_thread_gets_its_own_generator():
    generator = ThreadLocalIdGenerator()
    per_thread = {}

    def worker(name):
        per_thread[name] = [generator.generate_span_id() for _ in range(100)]

    threads = [threading.Thread(target=worker, args=(f"t{i}",)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    all_ids = [span_id for ids in per_thread.values() for span_id in ids]
    assert len(set(all_ids)) == len(all_ids)


def test_seeding_failure_is_fatal(monkeypatch):
    def no_entropy(n):
        raise NotImplementedError("no entropy source")

    monkeypatch.setattr(ids_module.os, "urandom", no_entropy)
    with pytest.raises(EntropyError):
        ThreadLocalIdGenerator().generate_trace_id()


def test_seed_is_drawn_once_per_thread(monkeypatch):
    calls = []
    real_urandom = ids_module.os.urandom

    def counting_urandom(n):
        calls.append(n)
        return real_urandom(n)

    monkeypatch.setattr(ids_module.os, "urandom", counting_urandom)
    generator = ThreadLocalIdGenerator()
    for _ in range(10):
        generator.generate_trace_id()
        generator.generate_span_id()
    assert len(calls) == 1


@pytest.mark.skipif(not hasattr(os, "fork"), reason="requires os.fork")
def test_forked_child_does_not_repeat_parent_ids():
    generator = ThreadLocalIdGenerator()
    generator.generate_trace_id()

    read_fd, write_fd = os.pipe()
    pid = os.fork()
    if pid == 0:
        try:
            os.close(read_fd)
            os.write(write_fd, str(generator.generate_trace_id()).encode())
        finally:
            os._exit(0)

    os.close(write_fd)
    with os.fdopen(read_fd, "rb") as reader:
        child_trace_id = int(reader.read().decode())
    os.waitpid(pid, 0)

    parent_trace_id = generator.generate_trace_id()
    assert child_trace_id != parent_trace_id
