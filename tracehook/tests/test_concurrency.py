"""Tests for concurrent span creation across threads and asyncio tasks."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

from tracehook.processors.sampler import TraceIdRatioSampler


def _build_trace(tracer, index, depth=5):
    with tracer.start_span(f"root-{index}") as root:
        root_record = root.get_record()
        spans = [root]
        for level in range(depth):
            span = tracer.start_span(f"child-{index}-{level}")
            span.__enter__()
            spans.append(span)
        for span in reversed(spans[1:]):
            span.__exit__(None, None, None)
    return root_record


def test_threads_build_independent_traces(tracer, exporter):
    with ThreadPoolExecutor(max_workers=8) as pool:
        roots = list(pool.map(lambda i: _build_trace(tracer, i), range(64)))

    finished = exporter.get_finished_spans()
    assert len(finished) == 64 * 6
    assert tracer.layer.active_span_count == 0

    by_trace = {}
    for span in finished:
        by_trace.setdefault(span.trace_id, []).append(span)
    assert set(by_trace) == {root.trace_id for root in roots}

    for spans in by_trace.values():
        ids = {span.span_id for span in spans}
        roots_in_trace = [span for span in spans if span.parent_span_id is None]
        assert len(roots_in_trace) == 1
        for span in spans:
            if span.parent_span_id is not None:
                assert span.parent_span_id in ids


def test_sampling_is_uniform_within_each_trace(make_tracer, exporter):
    tracer = make_tracer(sampler=TraceIdRatioSampler(0.5))
    with ThreadPoolExecutor(max_workers=8) as pool:
        roots = list(pool.map(lambda i: _build_trace(tracer, i), range(64)))

    exported_traces = {span.trace_id for span in exporter.get_finished_spans()}
    for root in roots:
        if root.is_recording:
            count = sum(1 for s in exporter.get_finished_spans() if s.trace_id == root.trace_id)
            assert count == 6
        else:
            assert root.trace_id not in exported_traces


def test_asyncio_tasks_keep_their_own_current_span(tracer, exporter):
    async def handle(name):
        with tracer.start_span(name) as root:
            await asyncio.sleep(0)
            with tracer.start_span(f"{name}-child") as child:
                await asyncio.sleep(0)
                return root.get_record(), child.get_record()

    async def main():
        return await asyncio.gather(*(handle(f"req-{i}") for i in range(10)))

    for root, child in asyncio.run(main()):
        assert child.trace_id == root.trace_id
        assert child.parent_span_id == root.span_id
