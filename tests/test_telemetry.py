"""
Tests for the fire-and-forget telemetry sink.
"""
import json
import logging
from unittest.mock import Mock

from catalog_resolver.resolution import ResolutionRecord
from catalog_resolver.schemas import Candidate, FilterMethod, FilterResult, NoMatch, SingleMatch
from catalog_resolver.telemetry import LoggingTelemetryWriter, StoreTelemetryWriter, TelemetrySink


class ListWriter:
    def __init__(self):
        self.records = []

    def write(self, record):
        self.records.append(record)


class TestTelemetrySink:
    """Tests for queueing, draining and failure isolation."""

    def test_records_are_written(self):
        writer = ListWriter()
        sink = TelemetrySink(writer)

        assert sink.emit({"n": 1})
        assert sink.emit({"n": 2})
        assert sink.flush(timeout=2.0)
        sink.close()

        assert writer.records == [{"n": 1}, {"n": 2}]

    def test_full_queue_drops_records(self):
        writer = ListWriter()
        sink = TelemetrySink(writer, max_queue_size=1, start=False)

        assert sink.emit({"n": 1}) is True
        assert sink.emit({"n": 2}) is False
        assert sink.dropped_count == 1

        sink.start()
        assert sink.flush(timeout=2.0)
        sink.close()
        assert writer.records == [{"n": 1}]

    def test_writer_failure_is_swallowed(self):
        writer = Mock()
        writer.write.side_effect = [RuntimeError("disk full"), None]
        sink = TelemetrySink(writer)

        sink.emit({"n": 1})
        sink.emit({"n": 2})
        assert sink.flush(timeout=2.0)
        sink.close()

        assert sink.failed_count == 1
        assert writer.write.call_count == 2

    def test_flush_times_out_when_not_draining(self):
        sink = TelemetrySink(ListWriter(), start=False)
        sink.emit({"n": 1})
        assert sink.flush(timeout=0.05) is False

    def test_close_without_start(self):
        TelemetrySink(ListWriter(), start=False).close()


class TestWriters:
    """Tests for telemetry destinations."""

    def test_store_writer(self, store, tenant_id):
        StoreTelemetryWriter(store).write({
            "tenant_id": tenant_id,
            "query": "G3 vekt",
            "query_norm": "g3 vekt",
            "decision": "single",
        })
        assert store.recent_resolutions(tenant_id)[0]["query"] == "G3 vekt"

    def test_logging_writer(self, caplog):
        with caplog.at_level(logging.INFO, logger="catalog_resolver.telemetry.records"):
            LoggingTelemetryWriter().write({"decision": "none", "query": "Hvå"})

        assert json.loads(caplog.records[0].getMessage()) == {"decision": "none", "query": "Hvå"}


class TestResolutionRecord:
    """Tests for record construction."""

    def test_from_single_with_filter(self, catalog, tenant_id):
        winner = Candidate(item=catalog["g3"], alias_score=0.8, fts_score=0.0, total_score=0.8)
        outcome = SingleMatch(winner=winner, runner_up_gap=0.8, query_norm="g3 vekt", candidates=(winner,))
        filter_result = FilterResult(kept=(), method=FilterMethod.NONE, used_fallback=False, original_count=4)

        record = ResolutionRecord.from_outcome(tenant_id, "G3 vekt", outcome, filter_result).to_dict()

        assert record["decision"] == "single"
        assert record["reason"] is None
        assert record["top_candidates"][0]["item_id"] == "g3"
        assert record["filter_applied"] is True
        assert record["filter_method"] == "none"
        assert record["kept_passages"] == 0
        assert record["original_passages"] == 4

    def test_from_no_match(self, tenant_id):
        record = ResolutionRecord.from_outcome(tenant_id, None, NoMatch(query_norm="", reason="empty_query"))

        assert record.query == ""
        assert record.reason == "empty_query"
        assert record.top_candidates == []
        assert record.filter_applied is False
