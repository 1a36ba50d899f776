"""
Unit extractor - splits normalized document text into independently analyzable reviews
"""
from typing import List, Optional

from config.settings import settings
from layer_2_sentiment_analysis.response_decoder import decode_unit_list
from utils.logger import get_logger

logger = get_logger(__name__)


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens"""
    return len(text.split())


class UnitExtractor:
    """
    Decide how a document is split into review units

    Blank texts yield no units. Short texts are used as a single unit
    without calling the model. Any extraction failure (exception, empty
    list, non-string entries) falls back to the whole text as one unit;
    extraction never fails a file.
    """

    def __init__(self, client, min_words: Optional[int] = None):
        """
        Args:
            client: Object with an async extract_units(text) method
            min_words: Texts with fewer words skip extraction
        """
        self.client = client
        self.min_words = settings.EXTRACTION_MIN_WORDS if min_words is None else min_words

    async def extract(self, text: str) -> List[str]:
        """
        Split text into review units

        Args:
            text: Normalized document text

        Returns:
            List of units; [] for blank text, [text] whenever extraction is
            skipped or fails
        """
        word_count = count_words(text)
        if word_count == 0:
            logger.debug("Text is blank, no reviews to analyze")
            return []
        if word_count < self.min_words:
            logger.debug(f"Text has {word_count} words (< {self.min_words}), using it as a single unit")
            return [text]

        try:
            payload = await self.client.extract_units(text)
        except Exception as e:
            logger.warning(f"Review extraction failed, analyzing text as a single unit: {e}")
            return [text]

        decoded = decode_unit_list(payload)
        if not decoded.ok:
            logger.warning(f"Unusable extraction result ({decoded.error}), analyzing text as a single unit")
            return [text]

        logger.info(f"Extracted {len(decoded.value)} reviews from {word_count} words of text")
        return decoded.value
