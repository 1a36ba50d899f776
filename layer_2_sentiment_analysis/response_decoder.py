"""
Decoders that validate raw Gemini payloads against the shapes the dashboard expects

Every decoder returns a DecodeResult instead of raising, so callers decide
how a malformed payload is handled.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from models.analysis import Emotion, ReviewSample, Sentiment, SentimentResult

T = TypeVar("T")

_FENCE_PATTERN = re.compile(r'```(?:json)?\s*(.*?)\s*```', re.DOTALL)
_VALID_SENTIMENTS = {s.value for s in Sentiment}


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Tagged decode outcome: value is set when ok, error otherwise"""
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "DecodeResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "DecodeResult[T]":
        return cls(ok=False, error=error)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_json_payload(text: str) -> DecodeResult[Any]:
    """
    Parse a model response as JSON, ignoring Markdown code fences

    Args:
        text: Raw response text

    Returns:
        DecodeResult holding the parsed JSON value
    """
    cleaned = text.strip()
    if "```" in cleaned:
        match = _FENCE_PATTERN.search(cleaned)
        if match:
            cleaned = match.group(1).strip()
    try:
        return DecodeResult.success(json.loads(cleaned))
    except json.JSONDecodeError as e:
        return DecodeResult.failure(f"Response is not valid JSON: {e.msg}")


def decode_sentiment_payload(payload: Any) -> DecodeResult[SentimentResult]:
    """
    Validate a parsed sentiment response

    Required fields: overallSentiment (one of the four labels), numeric
    sentimentScore, non-empty summary and an emotions list whose entries
    carry a string name and a numeric score.
    """
    if not isinstance(payload, dict):
        return DecodeResult.failure("Response is not a JSON object")

    sentiment = payload.get("overallSentiment")
    if not sentiment:
        return DecodeResult.failure("Response is missing overallSentiment")
    if sentiment not in _VALID_SENTIMENTS:
        return DecodeResult.failure(f"Unknown overallSentiment '{sentiment}'")

    score = payload.get("sentimentScore")
    if not _is_number(score):
        return DecodeResult.failure("sentimentScore is not a number")

    summary = payload.get("summary")
    if not summary or not isinstance(summary, str):
        return DecodeResult.failure("Response is missing summary")

    raw_emotions = payload.get("emotions")
    if not isinstance(raw_emotions, list):
        return DecodeResult.failure("emotions is not a list")

    emotions = []
    for entry in raw_emotions:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) or not _is_number(entry.get("score")):
            return DecodeResult.failure("emotions entries must have a name and a numeric score")
        emotions.append(Emotion(name=entry["name"], score=float(entry["score"])))

    return DecodeResult.success(
        SentimentResult(
            overall_sentiment=Sentiment(sentiment),
            sentiment_score=float(score),
            summary=summary,
            emotions=tuple(emotions),
        )
    )


def decode_unit_list(payload: Any) -> DecodeResult[List[str]]:
    """
    Validate an extraction response: a non-empty list of non-blank strings

    Units are returned exactly as extracted; blank entries are skipped.
    """
    if not isinstance(payload, list):
        return DecodeResult.failure("Extraction response is not a list")
    if not all(isinstance(unit, str) for unit in payload):
        return DecodeResult.failure("Extraction response contains non-string entries")

    units = [unit for unit in payload if unit.strip()]
    if not units:
        return DecodeResult.failure("Extraction response is empty")
    return DecodeResult.success(units)


def decode_review_samples(payload: Any) -> DecodeResult[List[ReviewSample]]:
    """Validate a generated review list (reviewerName, rating 1-5, reviewText)"""
    if not isinstance(payload, list):
        return DecodeResult.failure("Review response is not a list")

    samples = []
    for entry in payload:
        if not isinstance(entry, dict):
            return DecodeResult.failure("Review entries must be objects")
        name = entry.get("reviewerName")
        rating = entry.get("rating")
        text = entry.get("reviewText")
        if not isinstance(name, str) or not isinstance(text, str) or not _is_number(rating):
            return DecodeResult.failure("Review entries need reviewerName, rating and reviewText")
        samples.append(
            ReviewSample(
                reviewer_name=name,
                rating=max(1, min(5, int(round(rating)))),
                review_text=text,
            )
        )
    return DecodeResult.success(samples)
