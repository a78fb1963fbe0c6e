from datetime import datetime

from core.errors import NetworkError
from core.history import HistoryAggregator
from core.models import InferenceResult

from fakes import FakeClient


class Recorder:

    def __init__(self, aggregator: HistoryAggregator):
        self.published = []
        self.errors = []
        self.loading = []
        aggregator.records_ready.connect(self.published.append)
        aggregator.error_occurred.connect(self.errors.append)
        aggregator.loading_changed.connect(self.loading.append)


def test_records_follow_listing_order_with_placeholders(runner):
    client = FakeClient(
        listing=["a.mp4", "b.mp4"],
        lookups={
            "a.mp4": InferenceResult("Fight", 0.92),
            "b.mp4": NetworkError("404 Not Found"),
        },
    )
    aggregator = HistoryAggregator(client, runner)
    rec = Recorder(aggregator)

    aggregator.refresh()

    assert len(rec.published) == 1
    records = rec.published[0]
    assert [r.filename for r in records] == ["a.mp4", "b.mp4"]
    assert records[0].result.label == "Fight"
    assert records[1].result == InferenceResult.placeholder()
    assert all(isinstance(r.fetched_at, datetime) for r in records)
    assert rec.errors == []
    assert rec.loading == [True, False]
    assert aggregator.records == records


def test_confidence_display_for_real_and_placeholder_records(runner):
    client = FakeClient(
        listing=["v1.mp4", "v2.mp4"],
        lookups={"v1.mp4": InferenceResult("Fight", 0.92), "v2.mp4": NetworkError("timeout")},
    )
    aggregator = HistoryAggregator(client, runner)
    rec = Recorder(aggregator)

    aggregator.refresh()

    shown = [(r.result.label, r.result.confidence_percent) for r in rec.published[0]]
    assert shown == [("Fight", 92), ("Unknown", 0)]


def test_listing_failure_publishes_nothing_and_reports(runner):
    client = FakeClient(listing=NetworkError("connection refused"))
    aggregator = HistoryAggregator(client, runner)
    rec = Recorder(aggregator)

    aggregator.refresh()

    assert rec.errors == ["Error loading video history: connection refused"]
    assert rec.published == [[]]
    assert client.looked_up == []
    assert aggregator.loading is False


def test_empty_listing_publishes_empty_list(runner):
    aggregator = HistoryAggregator(FakeClient(listing=[]), runner)
    rec = Recorder(aggregator)

    aggregator.refresh()

    assert rec.published == [[]]
    assert rec.errors == []


def test_lookups_run_concurrently_and_publish_atomically(deferred):
    client = FakeClient(
        listing=["a.mp4", "b.mp4", "c.mp4"],
        lookups={name: InferenceResult("No Fight", 0.1) for name in ("a.mp4", "b.mp4", "c.mp4")},
    )
    aggregator = HistoryAggregator(client, deferred)
    rec = Recorder(aggregator)

    aggregator.refresh()
    deferred.run()                     # listing
    assert len(deferred) == 3          # every lookup is in flight at once

    deferred.run(2)                    # c settles first
    deferred.run(0)                    # then a
    assert rec.published == []
    assert aggregator.loading is True

    deferred.run(0)                    # b, the last one
    assert [r.filename for r in rec.published[0]] == ["a.mp4", "b.mp4", "c.mp4"]
    assert aggregator.loading is False


def test_newer_refresh_discards_older_run(deferred):
    client = FakeClient(listing=["a.mp4"], lookups={"a.mp4": InferenceResult("Fight", 0.5)})
    aggregator = HistoryAggregator(client, deferred)
    rec = Recorder(aggregator)

    first = aggregator.refresh()
    deferred.run()                     # first listing, its lookup now queued
    second = aggregator.refresh()
    assert second > first

    deferred.run(0)                    # stale lookup from the first run
    assert rec.published == []

    deferred.run_all()
    assert len(rec.published) == 1


def test_dispose_drops_in_flight_results(deferred):
    client = FakeClient(listing=["a.mp4"], lookups={"a.mp4": InferenceResult("Fight", 0.5)})
    aggregator = HistoryAggregator(client, deferred)
    rec = Recorder(aggregator)

    aggregator.refresh()
    aggregator.dispose()
    deferred.run_all()

    assert rec.published == []
    assert client.looked_up == []
    assert aggregator.loading is False
