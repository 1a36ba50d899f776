"""
Layer 2: Sentiment Analysis helpers around the Gemini client
- Response Decoder (schema validation of model payloads)
- Unit Extractor (short-circuit and fallback policy for review splitting)
- Manual analysis (single text validation and classification)
"""
from .response_decoder import (
    DecodeResult,
    parse_json_payload,
    decode_sentiment_payload,
    decode_unit_list,
    decode_review_samples,
)
from .unit_extractor import UnitExtractor, count_words
from .manual import ManualInputError, validate_manual_text, analyze_manual_text

__all__ = [
    'DecodeResult',
    'parse_json_payload',
    'decode_sentiment_payload',
    'decode_unit_list',
    'decode_review_samples',
    'UnitExtractor',
    'count_words',
    'ManualInputError',
    'validate_manual_text',
    'analyze_manual_text',
]
