"""
Unit tests for Layer 3: Batch Processing
Tests the orchestrator's ordering, failure handling, progress and cancellation,
plus the summary aggregator
"""
import sys
import os
import asyncio
from dataclasses import FrozenInstanceError

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from layer_3_batch_processing.orchestrator import (
    BatchOrchestrator,
    EVENT_STARTED,
    EVENT_PROGRESS,
    EVENT_ITEM,
    EVENT_FILE_ERROR,
    EVENT_CANCELLED,
    EVENT_COMPLETED,
)
from layer_3_batch_processing.aggregator import (
    sentiment_counts,
    average_score,
    sentiment_percentages,
    summarize,
)
from layer_2_sentiment_analysis.unit_extractor import UnitExtractor
from models.analysis import AnalyzedItem, BatchStatus, Sentiment, SentimentResult, UploadedFile
from utils.llm_client import MalformedResponse


class FakeClient:
    """
    Classifier double

    extract_units splits on '|'. classify sleeps for the configured latency
    of a unit before answering, and raises for units listed in failures.
    """

    def __init__(self, failures=(), latencies=None):
        self.failures = set(failures)
        self.latencies = latencies or {}
        self.classified = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def extract_units(self, text):
        return text.split("|")

    async def classify(self, text):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latencies.get(text, 0))
            self.classified.append(text)
            if text in self.failures:
                raise MalformedResponse("Invalid response structure from API: missing summary")
            return SentimentResult(Sentiment.POSITIVE, 0.5, f"Summary of {text}", ())
        finally:
            self.in_flight -= 1


class EmptyExtractor:
    async def extract(self, text):
        return []


def make_file(name, content, last_modified=1.0):
    return UploadedFile(name=name, data=content.encode("utf-8"), last_modified=last_modified)


def make_orchestrator(client, extractor=None):
    return BatchOrchestrator(client, extractor=extractor or UnitExtractor(client, min_words=0))


def collect_events(orchestrator, files, cancel_event=None):
    async def run():
        return [event async for event in orchestrator.run(files, cancel_event=cancel_event)]
    return asyncio.run(run())


def make_item(sentiment, score, error=None):
    return AnalyzedItem(
        id=f"{sentiment.value}-{score}",
        source_file_name="file.txt",
        source_text="text",
        analysis=SentimentResult(sentiment, score, "summary", ()),
        error=error,
    )


class TestBatchOrchestrator:
    """Test the sequential batch pipeline"""

    def test_mixed_success_and_failure_scenario(self):
        """File A has one good and one bad unit, file B cannot be read"""
        client = FakeClient(failures={"bad unit"})
        files = [make_file("a.txt", "good unit|bad unit"), make_file("b.xlsx", "ignored")]

        state = asyncio.run(make_orchestrator(client).run_to_completion(files))

        assert len(state.results) == 3
        first, second, third = state.results
        assert first.id == "a.txt-1.0-0"
        assert first.error is None
        assert first.analysis.summary == "Summary of good unit"

        assert second.id == "a.txt-1.0-1"
        assert second.analysis.overall_sentiment == Sentiment.NEUTRAL
        assert second.analysis.sentiment_score == 0.0
        assert second.analysis.summary.startswith("Analysis failed:")
        assert second.error

        assert third.id == "b.xlsx-1.0-error"
        assert third.analysis.summary == "File processing failed."
        assert third.source_text.startswith("Could not read or process this file. Error:")
        assert third.error

        assert state.status == BatchStatus.COMPLETED_WITH_ERRORS
        assert state.is_finished
        assert state.error.startswith("Failed to process file b.xlsx:")
        assert state.progress.percent == 100.0

    def test_results_keep_order_despite_latency(self):
        """Earlier units are slower, yet results stay in (file, unit) order"""
        latencies = {"a1": 0.05, "a2": 0.01, "b1": 0.03, "b2": 0.0}
        client = FakeClient(latencies=latencies)
        files = [make_file("a.txt", "a1|a2"), make_file("b.txt", "b1|b2")]

        state = asyncio.run(make_orchestrator(client).run_to_completion(files))

        assert [item.source_text for item in state.results] == ["a1", "a2", "b1", "b2"]
        assert client.classified == ["a1", "a2", "b1", "b2"]
        assert client.max_in_flight == 1

    def test_every_unit_and_file_accounted_for(self):
        client = FakeClient(failures={"x2"})
        files = [
            make_file("one.txt", "x1|x2|x3"),
            make_file("two.doc", "unsupported"),
            make_file("three.txt", "y1"),
        ]

        state = asyncio.run(make_orchestrator(client).run_to_completion(files))

        # 3 units + 1 file error + 1 unit
        assert len(state.results) == 5
        assert [item.source_file_name for item in state.results] == [
            "one.txt", "one.txt", "one.txt", "two.doc", "three.txt"
        ]
        assert len(set(item.id for item in state.results)) == 5

    def test_event_sequence(self):
        client = FakeClient()
        events = collect_events(make_orchestrator(client), [make_file("a.txt", "u1|u2")])
        kinds = [event.kind for event in events]

        assert kinds[0] == EVENT_STARTED
        assert kinds[-1] == EVENT_COMPLETED
        assert kinds.count(EVENT_ITEM) == 2
        assert EVENT_PROGRESS in kinds
        assert events[0].state.status == BatchStatus.PROCESSING

    def test_snapshots_grow_and_are_immutable(self):
        client = FakeClient()
        events = collect_events(make_orchestrator(client), [make_file("a.txt", "u1|u2|u3")])
        item_events = [event for event in events if event.kind == EVENT_ITEM]

        assert [len(event.state.results) for event in item_events] == [1, 2, 3]
        # An earlier snapshot is unaffected by later items
        assert len(item_events[0].state.results) == 1
        assert item_events[0].item is item_events[0].state.results[-1]
        assert isinstance(item_events[0].state.results, tuple)
        with pytest.raises(FrozenInstanceError):
            item_events[0].state.status = BatchStatus.IDLE

    def test_progress_is_monotonic(self):
        client = FakeClient(failures={"b"})
        files = [make_file("one.txt", "a|b|c"), make_file("bad.bin", ""), make_file("two.txt", "d|e")]
        events = collect_events(make_orchestrator(client), files)
        percents = [event.state.progress.percent for event in events]

        assert percents == sorted(percents)
        assert all(0.0 <= p <= 100.0 for p in percents)
        assert percents[-1] == 100.0

    def test_progress_labels(self):
        client = FakeClient()
        events = collect_events(make_orchestrator(client), [make_file("a.txt", "u1|u2")])
        stages = [event.state.progress.stage for event in events if event.kind == EVENT_PROGRESS]

        assert stages == [
            "[1/1] Reading file",
            "[1/1] Extracting reviews",
            "[1/1] Analyzing review 1/2",
            "[1/1] Analyzing review 2/2",
        ]

    def test_file_error_event(self):
        events = collect_events(make_orchestrator(FakeClient()), [make_file("data.csv", "a,b")])
        error_events = [event for event in events if event.kind == EVENT_FILE_ERROR]

        assert len(error_events) == 1
        assert error_events[0].item.source_file_name == "data.csv"
        assert "Unsupported file type" in error_events[0].item.error

    def test_empty_extraction_skips_file(self):
        client = FakeClient()
        orchestrator = make_orchestrator(client, extractor=EmptyExtractor())

        state = asyncio.run(orchestrator.run_to_completion([make_file("a.txt", "anything")]))

        assert state.results == ()
        assert state.status == BatchStatus.COMPLETED
        assert client.classified == []

    def test_blank_file_is_skipped_without_requests(self):
        client = FakeClient()
        orchestrator = BatchOrchestrator(client, extractor=UnitExtractor(client, min_words=50))

        state = asyncio.run(orchestrator.run_to_completion([make_file("empty.txt", "   \n  ")]))

        assert state.results == ()
        assert state.status == BatchStatus.COMPLETED
        assert client.classified == []

    def test_empty_batch(self):
        state = asyncio.run(make_orchestrator(FakeClient()).run_to_completion([]))
        assert state.results == ()
        assert state.status == BatchStatus.COMPLETED
        assert state.progress.percent == 100.0

    def test_short_text_without_extraction_call(self):
        """With the default threshold a short file is analyzed whole"""
        client = FakeClient()
        orchestrator = BatchOrchestrator(client, extractor=UnitExtractor(client, min_words=50))

        state = asyncio.run(orchestrator.run_to_completion([make_file("a.txt", "short|review")]))

        assert [item.source_text for item in state.results] == ["short|review"]

    def test_cancellation_stops_before_next_unit(self):
        client = FakeClient()
        files = [make_file("a.txt", "u1|u2|u3"), make_file("b.txt", "v1")]
        received = []

        async def run():
            cancel_event = asyncio.Event()

            def on_event(event):
                received.append(event)
                if event.kind == EVENT_ITEM:
                    cancel_event.set()

            return await make_orchestrator(client).run_to_completion(
                files, on_event=on_event, cancel_event=cancel_event
            )

        state = asyncio.run(run())

        assert received[-1].kind == EVENT_CANCELLED
        assert [item.source_text for item in state.results] == ["u1"]
        assert client.classified == ["u1"]
        assert state.progress.stage == "Cancelled"

    def test_on_event_receives_every_event(self):
        received = []
        state = asyncio.run(
            make_orchestrator(FakeClient()).run_to_completion([make_file("a.txt", "u1")], on_event=received.append)
        )
        assert received[-1].state is state


class TestAggregator:
    """Test summary statistics"""

    def test_counts(self):
        results = [
            make_item(Sentiment.POSITIVE, 0.8),
            make_item(Sentiment.POSITIVE, 0.6),
            make_item(Sentiment.NEGATIVE, -0.5),
        ]
        assert sentiment_counts(results) == {"Positive": 2, "Negative": 1}

    def test_average_score(self):
        results = [make_item(Sentiment.POSITIVE, 0.8), make_item(Sentiment.NEGATIVE, -0.4)]
        assert average_score(results) == pytest.approx(0.2)

    def test_empty_results(self):
        assert sentiment_counts([]) == {}
        assert average_score([]) == 0.0
        assert sentiment_percentages([]) == {}
        assert summarize([]) == {"sentimentCounts": {}, "averageScore": 0.0, "totalReviews": 0}

    def test_failed_items_count_as_neutral(self):
        failed = AnalyzedItem(
            id="x-error",
            source_file_name="x.pdf",
            source_text="Could not read or process this file. Error: boom",
            analysis=SentimentResult.placeholder("File processing failed."),
            error="boom",
        )
        results = [make_item(Sentiment.POSITIVE, 1.0), failed]
        assert sentiment_counts(results) == {"Positive": 1, "Neutral": 1}
        assert average_score(results) == pytest.approx(0.5)

    def test_percentages(self):
        results = [
            make_item(Sentiment.MIXED, 0.0),
            make_item(Sentiment.MIXED, 0.1),
            make_item(Sentiment.NEUTRAL, 0.0),
            make_item(Sentiment.POSITIVE, 0.9),
        ]
        percentages = sentiment_percentages(results)
        assert percentages["Mixed"] == pytest.approx(50.0)
        assert sum(percentages.values()) == pytest.approx(100.0)

    def test_aggregation_is_repeatable(self):
        results = [make_item(Sentiment.NEGATIVE, -0.3), make_item(Sentiment.MIXED, 0.2)]
        assert summarize(results) == summarize(results)
        assert len(results) == 2

    def test_summarize(self):
        results = [make_item(Sentiment.POSITIVE, 0.5), make_item(Sentiment.NEGATIVE, -0.5)]
        summary = summarize(results)
        assert summary["totalReviews"] == 2
        assert summary["averageScore"] == pytest.approx(0.0)
        assert summary["sentimentCounts"] == {"Positive": 1, "Negative": 1}
