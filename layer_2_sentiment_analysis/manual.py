"""
Manual analysis - validate and analyze a single piece of text typed or uploaded by the user
"""
from typing import Optional

from config.settings import settings
from layer_2_sentiment_analysis.unit_extractor import count_words
from models.analysis import SentimentResult
from utils.logger import get_logger

logger = get_logger(__name__)


class ManualInputError(ValueError):
    """The text is too short to analyze"""


def validate_manual_text(text: str, min_words: Optional[int] = None) -> str:
    """
    Check that text is long enough for a meaningful analysis

    Args:
        text: User supplied text
        min_words: Minimum number of words (defaults to MANUAL_MIN_WORDS)

    Returns:
        The stripped text

    Raises:
        ManualInputError: text is blank or too short
    """
    min_words = settings.MANUAL_MIN_WORDS if min_words is None else min_words
    trimmed = (text or "").strip()
    if not trimmed:
        raise ManualInputError("Please enter some text to analyze.")
    if count_words(trimmed) < min_words:
        raise ManualInputError(f"Please enter at least {min_words} words for a meaningful analysis.")
    return trimmed


async def analyze_manual_text(client, text: str, history=None) -> SentimentResult:
    """
    Validate, classify and record a manual analysis

    Args:
        client: Object with an async classify(text) method
        text: Text to analyze
        history: Optional AnalysisHistory the result is added to

    Returns:
        SentimentResult from the classifier

    Raises:
        ManualInputError: text failed validation
        ClassifierError: classification failed
    """
    trimmed = validate_manual_text(text)
    result = await client.classify(trimmed)
    logger.info(f"Manual analysis: {result.overall_sentiment.value} ({result.sentiment_score:+.2f})")
    if history is not None:
        history.add(trimmed, result)
    return result
