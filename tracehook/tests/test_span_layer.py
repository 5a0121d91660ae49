"""Tests for the span-lifecycle layer: identity, parentage, sampling and close."""

import logging

import pytest

from tracehook.config import TracingConfig
from tracehook.errors import IntegrationError
from tracehook.exporter.in_memory_exporter import InMemoryExporter
from tracehook.processors.base import SpanProcessor
from tracehook.processors.sampler import AlwaysOffSampler, Sampler
from tracehook.tracer.layer import SpanLayer
from tracehook.tracer.record import RemoteParent, SpanRecord

REMOTE_TOKEN = "262603779606908057216172753575155927278:4855502779463763640:0:1"


class CountingSampler(Sampler):
    def __init__(self, decision=True):
        self.decision = decision
        self.calls = []

    def should_sample(self, trace_id):
        self.calls.append(trace_id)
        return self.decision


class TestParentLinkage:
    def test_root_then_child(self, tracer):
        """A root is sampled and parentless; its child copies the root's identity."""
        with tracer.start_span("A") as a:
            b = tracer.start_span("B")
            rec_a = a.get_record()
            rec_b = b.get_record()
            b.end()

        assert rec_a.is_recording is True
        assert rec_a.parent_span_id is None
        assert rec_b.trace_id == rec_a.trace_id
        assert rec_b.parent_span_id == rec_a.span_id
        assert rec_b.is_recording is True
        assert rec_b.span_id != rec_a.span_id

    def test_explicit_parent_beats_current_span(self, tracer):
        other = tracer.start_span("other")
        with tracer.start_span("current"):
            child = tracer.start_span("child", parent=other)
            assert child.get_record().parent_span_id == other.get_record().span_id
            child.end()
        other.end()

    def test_closing_parent_first_keeps_child_identity(self, tracer, exporter):
        a = tracer.start_span("A")
        with a:
            b = tracer.start_span("B")
        rec_a = exporter.get_finished_spans()[0]

        rec_b = b.get_record()
        assert rec_b.trace_id == rec_a.trace_id
        assert rec_b.parent_span_id == rec_a.span_id
        b.end()

        finished = {span.name: span for span in exporter.get_finished_spans()}
        assert finished["B"].parent_span_id == finished["A"].span_id

    def test_parent_resolving_to_closed_span_makes_a_root(self, tracer):
        a = tracer.start_span("A")
        a.end()
        b = tracer.start_span("B", parent=a)
        rec = b.get_record()
        assert rec.parent_span_id is None
        b.end()

    def test_siblings_share_trace(self, tracer):
        with tracer.start_span("root") as root:
            first = tracer.start_span("first")
            second = tracer.start_span("second")
            assert first.get_record().trace_id == second.get_record().trace_id == root.get_record().trace_id
            first.end()
            second.end()


class TestSampling:
    def test_only_root_consults_sampler(self, make_tracer):
        sampler = CountingSampler()
        tracer = make_tracer(sampler=sampler)
        with tracer.start_span("root") as root:
            with tracer.start_span("child"):
                tracer.start_span("grandchild").end()
            assert sampler.calls == [root.get_record().trace_id]

    def test_root_decision_matches_sampler(self, make_tracer):
        tracer = make_tracer(sampler=CountingSampler(decision=False))
        span = tracer.start_span("root")
        assert span.is_recording is False
        span.end()

    def test_unsampled_root_children_inherit(self, make_tracer):
        tracer = make_tracer(sampler=AlwaysOffSampler())
        with tracer.start_span("root"):
            child = tracer.start_span("child")
            assert child.is_recording is False
            child.end()

    def test_unsampled_spans_are_not_exported_but_logged(self, make_tracer, exporter, caplog):
        caplog.set_level(logging.INFO, logger="tracehook.spans")
        tracer = make_tracer(sampler=AlwaysOffSampler())
        tracer.start_span("quiet").end()

        assert exporter.get_finished_spans() == []
        assert any("name=quiet" in r.getMessage() and "sampled=False" in r.getMessage() for r in caplog.records)

    def test_sampled_span_exported_once(self, tracer, exporter, caplog):
        caplog.set_level(logging.INFO, logger="tracehook.spans")
        span = tracer.start_span("loud")
        span.end()
        span.end()

        assert [s.name for s in exporter.get_finished_spans()] == ["loud"]
        assert sum("name=loud" in r.getMessage() for r in caplog.records) == 1

    def test_is_recording_is_fixed(self):
        record = SpanRecord(
            name="x", trace_id=1, span_id=2, parent_span_id=None, is_recording=True, start_time_ns=0
        )
        with pytest.raises(AttributeError):
            record.is_recording = False


class TestAttributes:
    def test_initial_and_recorded_fields(self, tracer, exporter):
        span = tracer.start_span("op", {"attribute1": "v1", "count": 3})
        span.record(attribute3="value3")
        span.record({"attribute1": "v2"})
        span.end()

        attrs = exporter.get_finished_spans()[0].attributes
        assert attrs == {"attribute1": "v2", "count": "3", "attribute3": "value3"}

    def test_repeated_record_is_idempotent(self, tracer):
        span = tracer.start_span("op")
        span.record(key="value")
        span.record(key="value")
        assert span.get_record().attributes == {"key": "value"}
        span.end()

    def test_record_after_end_is_ignored(self, tracer):
        layer = tracer.layer
        span = tracer.start_span("op")
        span.end()
        layer.on_span_record(span.handle, {"late": "1"})
        assert layer.get_record(span.handle) is None

    def test_exception_recorded_on_exit(self, tracer, exporter):
        with pytest.raises(ValueError):
            with tracer.start_span("boom"):
                raise ValueError("bad input")
        attrs = exporter.get_finished_spans()[0].attributes
        assert attrs["exception.type"] == "ValueError"
        assert attrs["exception.message"] == "bad input"


class TestLifecycle:
    def test_end_time_not_before_start(self, tracer, exporter):
        for _ in range(20):
            tracer.start_span("op").end()
        for span in exporter.get_finished_spans():
            assert span.end_time_ns >= span.start_time_ns
            assert span.duration_ns >= 0

    def test_closed_span_leaves_store(self, tracer):
        span = tracer.start_span("op")
        assert tracer.layer.active_span_count == 1
        span.end()
        assert tracer.layer.active_span_count == 0

    def test_double_start_is_an_integration_error(self):
        layer = SpanLayer(processors=[])
        layer.on_span_start(1, "first")
        with pytest.raises(IntegrationError):
            layer.on_span_start(1, "again")

    def test_close_without_record_is_an_integration_error(self):
        layer = SpanLayer(processors=[])
        with pytest.raises(IntegrationError):
            layer.on_span_close(99)

    def test_exporter_failure_does_not_reach_host(self, caplog):
        class Broken(InMemoryExporter):
            def export(self, span):
                raise RuntimeError("backend down")

        layer = SpanLayer(exporter=Broken(), processors=[])
        layer.on_span_start(1, "op")
        with caplog.at_level(logging.WARNING, logger="tracehook.tracer.layer"):
            finished = layer.on_span_close(1)
        assert finished.end_time_ns is not None
        assert any("failed" in r.getMessage() for r in caplog.records)

    def test_exporter_flush_and_shutdown_failures_are_logged(self, caplog):
        class Broken(InMemoryExporter):
            def force_flush(self, timeout=None):
                raise ValueError("I/O operation on closed file")

            def shutdown(self):
                raise ValueError("I/O operation on closed file")

        layer = SpanLayer(exporter=Broken(), processors=[])
        with caplog.at_level(logging.WARNING, logger="tracehook.tracer.layer"):
            layer.force_flush()
            layer.shutdown()
        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 2
        assert "force_flush" in messages[0]
        assert "failed on shutdown" in messages[1]

    def test_processors_see_every_span(self):
        seen = []

        class Recorder(SpanProcessor):
            def on_start(self, span):
                seen.append(("start", span.name))

            def on_end(self, span):
                seen.append(("end", span.name))

        layer = SpanLayer(TracingConfig(sampler=AlwaysOffSampler()), processors=[Recorder()])
        layer.on_span_start(1, "op")
        layer.on_span_close(1)
        assert seen == [("start", "op"), ("end", "op")]


class TestRemoteParent:
    def test_set_parent_propagates_to_descendants(self, tracer, exporter):
        server = tracer.start_span("server")
        assert server.set_parent(REMOTE_TOKEN) is True
        with server:
            with tracer.start_span("inner"):
                tracer.start_span("leaf").end()

        spans = {s.name: s for s in exporter.get_finished_spans()}
        for name in ("server", "inner", "leaf"):
            assert spans[name].trace_id == 262603779606908057216172753575155927278
        assert spans["server"].parent_span_id == 4855502779463763640
        assert spans["inner"].parent_span_id == spans["server"].span_id
        assert spans["leaf"].parent_span_id == spans["inner"].span_id

    def test_set_parent_keeps_sampling_decision(self, make_tracer):
        tracer = make_tracer(sampler=AlwaysOffSampler())
        span = tracer.start_span("server")
        span.set_parent(REMOTE_TOKEN)
        assert span.is_recording is False
        span.end()

    def test_malformed_token_leaves_root(self, tracer):
        span = tracer.start_span("server")
        before = span.get_record()
        assert span.set_parent("garbage") is False
        after = span.get_record()
        assert after.trace_id == before.trace_id
        assert after.parent_span_id is None
        span.end()

    def test_set_parent_on_missing_record_is_an_integration_error(self):
        layer = SpanLayer(processors=[])
        with pytest.raises(IntegrationError):
            layer.set_remote_parent(5, REMOTE_TOKEN)

    def test_remote_parent_at_start_uses_sampled_flag(self, make_tracer):
        sampler = CountingSampler(decision=True)
        tracer = make_tracer(sampler=sampler)
        span = tracer.start_span("server", remote_parent="11:22:0:0")
        rec = span.get_record()
        assert (rec.trace_id, rec.parent_span_id, rec.is_recording) == (11, 22, False)
        assert sampler.calls == []
        span.end()

    def test_remote_parent_without_flag_asks_sampler(self):
        sampler = CountingSampler(decision=False)
        layer = SpanLayer(TracingConfig(sampler=sampler), processors=[])
        layer.on_span_start(1, "server", remote_parent=RemoteParent(trace_id=11, span_id=22))
        assert layer.get_record(1).is_recording is False
        assert sampler.calls == [11]

    def test_invalid_remote_parent_falls_back_to_local(self, tracer):
        with tracer.start_span("local") as local:
            child = tracer.start_span("child", remote_parent="garbage")
            assert child.get_record().parent_span_id == local.get_record().span_id
            child.end()

    def test_propagation_token_for_child(self, tracer):
        with tracer.start_span("root") as root:
            child = tracer.start_span("child")
            rec_root = root.get_record()
            rec_child = child.get_record()
            assert child.propagation_token() == (
                f"{rec_root.trace_id}:{rec_child.span_id}:{rec_root.span_id}:1"
            )
            child.end()
