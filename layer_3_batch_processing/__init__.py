"""
Layer 3: Batch Processing
- Orchestrator (sequential file -> review -> sentiment pipeline with progress events)
- Aggregator (sentiment counts and average score)
"""
from .orchestrator import (
    BatchOrchestrator,
    BatchEvent,
    EVENT_STARTED,
    EVENT_PROGRESS,
    EVENT_ITEM,
    EVENT_FILE_ERROR,
    EVENT_CANCELLED,
    EVENT_COMPLETED,
)
from .aggregator import sentiment_counts, average_score, sentiment_percentages, summarize

__all__ = [
    'BatchOrchestrator',
    'BatchEvent',
    'EVENT_STARTED',
    'EVENT_PROGRESS',
    'EVENT_ITEM',
    'EVENT_FILE_ERROR',
    'EVENT_CANCELLED',
    'EVENT_COMPLETED',
    'sentiment_counts',
    'average_score',
    'sentiment_percentages',
    'summarize',
]
