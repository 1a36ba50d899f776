"""
Analysis data models shared by ingestion, batch processing and reporting
"""
import hashlib
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class Sentiment(str, Enum):
    """Coarse sentiment label returned by the classifier"""
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    MIXED = "Mixed"


@dataclass(frozen=True)
class Emotion:
    """A detected emotion with a confidence score from 0 to 1"""
    name: str
    score: float

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score}


@dataclass(frozen=True)
class SentimentResult:
    """Sentiment breakdown of one piece of text"""
    overall_sentiment: Sentiment
    sentiment_score: float  # -1.0 (very negative) to 1.0 (very positive)
    summary: str
    emotions: Tuple[Emotion, ...] = ()

    @classmethod
    def placeholder(cls, summary: str) -> "SentimentResult":
        """
        Neutral, zero-score result used when an analysis could not be produced

        Args:
            summary: Description of why the analysis failed

        Returns:
            Placeholder SentimentResult with no emotions
        """
        return cls(
            overall_sentiment=Sentiment.NEUTRAL,
            sentiment_score=0.0,
            summary=summary,
            emotions=(),
        )

    def to_dict(self) -> dict:
        """Convert to the JSON shape used by the classifier and exports"""
        return {
            "overallSentiment": self.overall_sentiment.value,
            "sentimentScore": self.sentiment_score,
            "summary": self.summary,
            "emotions": [emotion.to_dict() for emotion in self.emotions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SentimentResult":
        """Create result from a dictionary previously produced by to_dict()"""
        return cls(
            overall_sentiment=Sentiment(data["overallSentiment"]),
            sentiment_score=float(data["sentimentScore"]),
            summary=data["summary"],
            emotions=tuple(
                Emotion(name=e["name"], score=float(e["score"]))
                for e in data.get("emotions", [])
            ),
        )


def content_digest(data: bytes) -> str:
    """Short SHA-256 hex digest identifying file content"""
    return hashlib.sha256(data).hexdigest()[:16]


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded document waiting in the batch queue"""
    name: str
    data: bytes = field(repr=False)
    last_modified: Union[float, str] = 0.0

    @property
    def extension(self) -> str:
        """Lowercased extension without the dot ('' when the name has none)"""
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[-1].lower()

    @property
    def id(self) -> str:
        """Identity key used for queue de-duplication"""
        return f"{self.name}-{self.last_modified}"

    @classmethod
    def from_path(cls, path: str) -> "UploadedFile":
        """Read a file from disk"""
        with open(path, "rb") as f:
            data = f.read()
        return cls(
            name=os.path.basename(path),
            data=data,
            last_modified=os.path.getmtime(path),
        )

    @classmethod
    def from_upload(cls, upload: Any) -> "UploadedFile":
        """
        Create from a Streamlit UploadedFile

        Streamlit exposes neither a modification time nor an id that
        survives picking the same file again, so a digest of the content
        stands in for the timestamp.
        """
        data = upload.getvalue()
        return cls(
            name=upload.name,
            data=data,
            last_modified=content_digest(data),
        )


@dataclass(frozen=True)
class AnalyzedItem:
    """One analyzed unit of text from a batch run"""
    id: str
    source_file_name: str
    source_text: str
    analysis: SentimentResult
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "sourceFileName": self.source_file_name,
            "sourceText": self.source_text,
            "analysis": self.analysis.to_dict(),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ReviewSample:
    """Generated sample review shown in the review explorer"""
    reviewer_name: str
    rating: int  # 1-5 stars
    review_text: str

    def to_dict(self) -> dict:
        return {
            "reviewerName": self.reviewer_name,
            "rating": self.rating,
            "reviewText": self.review_text,
        }


class BatchStatus(str, Enum):
    """Lifecycle of a batch run"""
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    # The run finished, but at least one file could not be read
    COMPLETED_WITH_ERRORS = "completed_with_errors"


@dataclass(frozen=True)
class Progress:
    """Progress report for the current batch stage"""
    stage: str = ""
    detail: str = ""
    percent: float = 0.0


@dataclass(frozen=True)
class BatchState:
    """Immutable snapshot of a batch run"""
    files: Tuple[UploadedFile, ...] = ()
    results: Tuple[AnalyzedItem, ...] = ()
    status: BatchStatus = BatchStatus.IDLE
    progress: Progress = field(default_factory=Progress)
    error: Optional[str] = None  # Most recent file-level failure

    @property
    def is_finished(self) -> bool:
        return self.status in (BatchStatus.COMPLETED, BatchStatus.COMPLETED_WITH_ERRORS)


@dataclass(frozen=True)
class HistoryItem:
    """A saved manual analysis"""
    id: str  # ISO timestamp of the analysis
    timestamp: str  # Human readable timestamp
    source_text: str
    analysis: SentimentResult

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "sourceText": self.source_text,
            "analysis": self.analysis.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryItem":
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            source_text=data["sourceText"],
            analysis=SentimentResult.from_dict(data["analysis"]),
        )


def results_to_dicts(results: List[AnalyzedItem]) -> List[Dict[str, Any]]:
    """Convert analyzed items to plain dictionaries"""
    return [item.to_dict() for item in results]
