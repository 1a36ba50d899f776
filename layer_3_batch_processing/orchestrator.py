"""
Batch orchestrator - reads, splits and analyzes a list of files one review at a time

Files are processed strictly in order and every unit is classified before the
next one starts, so there is never more than one Gemini request in flight and
results always arrive in (file, unit) order. Failures are recorded on the
affected item and the run continues with the next unit or file.
"""
import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from typing import AsyncIterator, Callable, Iterable, Optional

from layer_1_document_ingestion.normalizer import normalize
from layer_2_sentiment_analysis.unit_extractor import UnitExtractor
from models.analysis import (
    AnalyzedItem,
    BatchState,
    BatchStatus,
    Progress,
    SentimentResult,
    UploadedFile,
)
from utils.logger import get_logger

logger = get_logger(__name__)

# Event kinds
EVENT_STARTED = "started"
EVENT_PROGRESS = "progress"
EVENT_ITEM = "item"
EVENT_FILE_ERROR = "file_error"
EVENT_CANCELLED = "cancelled"
EVENT_COMPLETED = "completed"


@dataclass(frozen=True)
class BatchEvent:
    """One step of a batch run, carrying the state snapshot after that step"""
    kind: str
    state: BatchState
    item: Optional[AnalyzedItem] = None


def _error_message(error: Exception) -> str:
    return str(error) or error.__class__.__name__


class BatchOrchestrator:
    """Drive normalizer -> review extraction -> per-review classification over many files"""

    def __init__(
        self,
        client,
        extractor: Optional[UnitExtractor] = None,
        normalizer: Callable[[UploadedFile], str] = normalize,
    ):
        """
        Initialize orchestrator

        Args:
            client: Object with async classify(text) and extract_units(text) methods
            extractor: UnitExtractor (creates one around client if not provided)
            normalizer: Function turning an UploadedFile into text
        """
        self.client = client
        self.extractor = extractor or UnitExtractor(client)
        self.normalizer = normalizer

    async def run(
        self,
        files: Iterable[UploadedFile],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[BatchEvent]:
        """
        Process a batch of files, yielding an event after every state change

        Args:
            files: Files to analyze, in processing order
            cancel_event: When set, the run stops before the next file or unit

        Yields:
            BatchEvent objects; the last one is either 'completed' or 'cancelled'
        """
        files = tuple(files)
        total = len(files)
        start_time = datetime.now()
        had_file_error = False

        state = BatchState(files=files, results=(), status=BatchStatus.PROCESSING, progress=Progress())
        logger.info("=" * 60)
        logger.info(f"Starting batch analysis of {total} file(s)")
        logger.info("=" * 60)
        yield BatchEvent(EVENT_STARTED, state)

        for i, file in enumerate(files):
            if cancel_event is not None and cancel_event.is_set():
                yield self._cancelled(state, had_file_error)
                return

            state = replace(state, progress=Progress(f"[{i + 1}/{total}] Reading file", file.name, i / total * 100))
            yield BatchEvent(EVENT_PROGRESS, state)

            try:
                text = await asyncio.to_thread(self.normalizer, file)
            except Exception as e:
                message = _error_message(e)
                logger.error(f"Failed to process file {file.name}: {message}")
                had_file_error = True
                item = AnalyzedItem(
                    id=f"{file.id}-error",
                    source_file_name=file.name,
                    source_text=f"Could not read or process this file. Error: {message}",
                    analysis=SentimentResult.placeholder("File processing failed."),
                    error=message,
                )
                state = replace(
                    state,
                    results=state.results + (item,),
                    error=f"Failed to process file {file.name}: {message}",
                )
                yield BatchEvent(EVENT_FILE_ERROR, state, item)
                continue

            state = replace(
                state,
                progress=Progress(f"[{i + 1}/{total}] Extracting reviews", file.name, (i + 0.25) / total * 100),
            )
            yield BatchEvent(EVENT_PROGRESS, state)

            units = await self.extractor.extract(text)
            if not units:
                logger.info(f"No reviews found in {file.name}, skipping")
                continue

            unit_count = len(units)
            logger.info(f"Analyzing {unit_count} review(s) from {file.name}")

            for j, unit in enumerate(units):
                if cancel_event is not None and cancel_event.is_set():
                    yield self._cancelled(state, had_file_error)
                    return

                percent = (i + 0.5 + (j / unit_count) * 0.5) / total * 100
                state = replace(
                    state,
                    progress=Progress(f"[{i + 1}/{total}] Analyzing review {j + 1}/{unit_count}", file.name, percent),
                )
                yield BatchEvent(EVENT_PROGRESS, state)

                item = await self._analyze_unit(file, j, unit)
                state = replace(state, results=state.results + (item,))
                yield BatchEvent(EVENT_ITEM, state, item)

        status = BatchStatus.COMPLETED_WITH_ERRORS if had_file_error else BatchStatus.COMPLETED
        state = replace(state, status=status, progress=Progress("Completed", "", 100.0))

        duration = (datetime.now() - start_time).total_seconds()
        failed_items = len([item for item in state.results if item.error])
        logger.info("=" * 60)
        logger.info(f"Batch complete in {duration:.2f}s: {len(state.results)} item(s), {failed_items} with errors")
        logger.info("=" * 60)
        yield BatchEvent(EVENT_COMPLETED, state)

    async def _analyze_unit(self, file: UploadedFile, index: int, unit: str) -> AnalyzedItem:
        """Classify one unit; failures become an item with a placeholder analysis"""
        try:
            analysis = await self.client.classify(unit)
        except Exception as e:
            message = _error_message(e)
            logger.warning(f"Analysis failed for review {index + 1} of {file.name}: {message}")
            return AnalyzedItem(
                id=f"{file.id}-{index}",
                source_file_name=file.name,
                source_text=unit,
                analysis=SentimentResult.placeholder(f"Analysis failed: {message}"),
                error=message,
            )
        return AnalyzedItem(
            id=f"{file.id}-{index}",
            source_file_name=file.name,
            source_text=unit,
            analysis=analysis,
        )

    def _cancelled(self, state: BatchState, had_file_error: bool) -> BatchEvent:
        logger.info(f"Batch cancelled after {len(state.results)} item(s)")
        status = BatchStatus.COMPLETED_WITH_ERRORS if had_file_error else BatchStatus.COMPLETED
        progress = replace(state.progress, stage="Cancelled")
        return BatchEvent(EVENT_CANCELLED, replace(state, status=status, progress=progress))

    async def run_to_completion(
        self,
        files: Iterable[UploadedFile],
        on_event: Optional[Callable[[BatchEvent], None]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchState:
        """
        Run a batch and return its final state

        Args:
            files: Files to analyze
            on_event: Called with every event as it happens
            cancel_event: Optional cancellation flag

        Returns:
            Final BatchState
        """
        state = BatchState(files=tuple(files))
        async for event in self.run(state.files, cancel_event=cancel_event):
            state = event.state
            if on_event is not None:
                on_event(event)
        return state
