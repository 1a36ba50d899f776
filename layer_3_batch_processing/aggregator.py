"""
Summary statistics over analyzed items

These are recomputed from the full result list on every call.
"""
from collections import Counter
from typing import Any, Dict, Sequence

from models.analysis import AnalyzedItem


def sentiment_counts(results: Sequence[AnalyzedItem]) -> Dict[str, int]:
    """
    Count items per sentiment label

    Args:
        results: Analyzed items

    Returns:
        Dictionary mapping labels to counts; labels that never occur are absent
    """
    counts = Counter()
    for item in results:
        counts[item.analysis.overall_sentiment.value] += 1
    return dict(counts)


def average_score(results: Sequence[AnalyzedItem]) -> float:
    """Mean sentiment score, 0.0 for an empty list"""
    if not results:
        return 0.0
    return sum(item.analysis.sentiment_score for item in results) / len(results)


def sentiment_percentages(results: Sequence[AnalyzedItem]) -> Dict[str, float]:
    """Share of each label in percent"""
    total = len(results)
    if total == 0:
        return {}
    return {label: count / total * 100 for label, count in sentiment_counts(results).items()}


def summarize(results: Sequence[AnalyzedItem]) -> Dict[str, Any]:
    """Summary block handed to the exporters"""
    return {
        "sentimentCounts": sentiment_counts(results),
        "averageScore": average_score(results),
        "totalReviews": len(results),
    }
