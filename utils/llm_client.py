"""
Gemini client that classifies sentiment, splits documents into reviews and
generates sample reviews.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import google.generativeai as genai

from config.settings import settings
from layer_2_sentiment_analysis.response_decoder import (
    decode_review_samples,
    decode_sentiment_payload,
    parse_json_payload,
)
from models.analysis import ReviewSample, SentimentResult
from utils.logger import get_logger

logger = get_logger(__name__)


class ClassifierError(Exception):
    """Base class for failures at the Gemini boundary"""


class EmptyResponse(ClassifierError):
    """Gemini returned no text, usually because a safety filter blocked it"""


class MalformedResponse(ClassifierError):
    """Gemini returned text that does not decode to the expected shape"""


class TransportError(ClassifierError):
    """The request itself failed (network, authentication, quota, timeout)"""


SENTIMENT_SYSTEM_INSTRUCTION = (
    "You are an expert sentiment analysis AI. Analyze the provided text and provide a detailed "
    "breakdown of its emotional tone. If the text is nonsensical, too short for analysis, or not "
    "in a language you can process, return a 'Neutral' sentiment, a score of 0, an empty emotions "
    "array, and a summary explaining why a proper analysis could not be performed. Your response "
    "must always be a JSON object that strictly adheres to the provided schema. Do not include any "
    "explanatory text outside of the JSON object."
)

EXTRACTION_SYSTEM_INSTRUCTION = (
    "You split documents into individual customer reviews or comments. Return a JSON array of "
    "strings, one entry per review, copying each review's text verbatim. Drop headings, page "
    "numbers and other text that is not part of a review. If the document is a single piece of "
    "writing, return it as a one-element array."
)

SAMPLES_SYSTEM_INSTRUCTION = (
    "You write realistic, varied customer reviews. Mix positive, negative, neutral and mixed "
    "opinions. Return only a JSON array."
)

SENTIMENT_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "overallSentiment": {
            "type": "STRING",
            "description": "The overall sentiment of the text. Must be one of: Positive, Negative, Neutral, Mixed.",
        },
        "sentimentScore": {
            "type": "NUMBER",
            "description": "A score from -1.0 (very negative) to 1.0 (very positive).",
        },
        "summary": {
            "type": "STRING",
            "description": "A brief, neutral summary of the key points in the text.",
        },
        "emotions": {
            "type": "ARRAY",
            "description": "Detected emotions and their confidence scores.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING", "description": "Emotion name, e.g. Joy, Anger, Sadness."},
                    "score": {"type": "NUMBER", "description": "Confidence from 0 to 1."},
                },
                "required": ["name", "score"],
            },
        },
    },
    "required": ["overallSentiment", "sentimentScore", "summary", "emotions"],
}

UNITS_SCHEMA: Dict[str, Any] = {"type": "ARRAY", "items": {"type": "STRING"}}

SAMPLES_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "reviewerName": {"type": "STRING"},
            "rating": {"type": "NUMBER", "description": "Star rating from 1 to 5."},
            "reviewText": {"type": "STRING"},
        },
        "required": ["reviewerName", "rating", "reviewText"],
    },
}


class GeminiSentimentClient:
    """
    Wrapper around the Gemini text generation API.

    Every operation performs exactly one request with a bounded timeout;
    there is no retry loop here, failures surface as ClassifierError.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key or settings.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not set; cannot initialize sentiment client.")

        genai.configure(api_key=self.api_key)

        self.model_name = model or settings.GEMINI_MODEL
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self.timeout = timeout or settings.LLM_REQUEST_TIMEOUT

        self.sentiment_model = self._build_model(SENTIMENT_SYSTEM_INSTRUCTION, SENTIMENT_SCHEMA)
        self.extraction_model = self._build_model(EXTRACTION_SYSTEM_INSTRUCTION, UNITS_SCHEMA)
        self.samples_model = self._build_model(SAMPLES_SYSTEM_INSTRUCTION, SAMPLES_SCHEMA, temperature=0.8)

    def _build_model(self, system_instruction: str, schema: Dict[str, Any], temperature: float | None = None):
        return genai.GenerativeModel(
            model_name=self.model_name,
            system_instruction=system_instruction,
            generation_config=genai.types.GenerationConfig(
                temperature=self.temperature if temperature is None else temperature,
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )

    async def _generate(self, model, prompt: str) -> str:
        """
        Send one request and return the stripped response text

        The blocking SDK call runs in a worker thread so callers can await it
        from any event loop.
        """
        try:
            response = await asyncio.to_thread(
                model.generate_content,
                prompt,
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            raise TransportError(f"Gemini request failed: {e}") from e

        try:
            text = response.text or ""
        except ValueError:
            # .text raises when the candidate was blocked and carries no parts
            text = ""
        return text.strip()

    async def classify(self, text: str) -> SentimentResult:
        """
        Analyze the sentiment of a piece of text

        Args:
            text: Text to analyze

        Returns:
            Decoded SentimentResult

        Raises:
            EmptyResponse: no payload returned
            MalformedResponse: payload does not match the sentiment schema
            TransportError: the request failed
        """
        raw = await self._generate(
            self.sentiment_model,
            f'Analyze the sentiment of the following text: "{text}"',
        )
        if not raw:
            raise EmptyResponse(
                "The API returned an empty response. This may be due to the input text triggering safety filters."
            )

        parsed = parse_json_payload(raw)
        if not parsed.ok:
            raise MalformedResponse(parsed.error)

        decoded = decode_sentiment_payload(parsed.value)
        if not decoded.ok:
            logger.debug(f"Rejected sentiment payload: {raw[:500]}")
            raise MalformedResponse(f"Invalid response structure from API: {decoded.error}")
        return decoded.value

    async def extract_units(self, text: str) -> List[Any]:
        """
        Ask Gemini to split a document into individual reviews

        Returns the decoded JSON value as-is when it is a list; entry types
        are validated by the caller.

        Raises:
            EmptyResponse, MalformedResponse, TransportError
        """
        raw = await self._generate(
            self.extraction_model,
            f"Extract every individual review or comment from this document:\n\n{text}",
        )
        if not raw:
            raise EmptyResponse("The API returned an empty extraction response.")

        parsed = parse_json_payload(raw)
        if not parsed.ok:
            raise MalformedResponse(parsed.error)
        if not isinstance(parsed.value, list):
            raise MalformedResponse("Extraction response is not a list")
        return parsed.value

    async def generate_samples(self, topic: str, count: int | None = None) -> List[ReviewSample]:
        """
        Generate realistic sample reviews about a topic

        Args:
            topic: What the reviews should be about
            count: Number of reviews (defaults to SAMPLE_REVIEW_COUNT)

        Returns:
            List of ReviewSample
        """
        count = count or settings.SAMPLE_REVIEW_COUNT
        raw = await self._generate(
            self.samples_model,
            f"Write {count} customer reviews about {topic}. Each review needs a reviewerName, "
            f"a rating from 1 to 5 and a reviewText of two to five sentences.",
        )
        if not raw:
            raise EmptyResponse("The API returned an empty response while generating reviews.")

        parsed = parse_json_payload(raw)
        if not parsed.ok:
            raise MalformedResponse(parsed.error)

        decoded = decode_review_samples(parsed.value)
        if not decoded.ok:
            raise MalformedResponse(decoded.error)
        return decoded.value

