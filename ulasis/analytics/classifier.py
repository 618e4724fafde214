"""Pluggable review classifiers.

Both backends expose `async classify(comment, rating)` returning
`FeedbackLabels`. `get_classifier()` picks one from `SENTIMENT_BACKEND`.
"""
import logging

from openai import AsyncOpenAI

from ulasis.app.core.config import settings, OPENAI_CLIENT
from ulasis.analytics.prompts import CLASSIFY_PROMPT
from ulasis.analytics.response import get_so_completion, get_provider
from ulasis.analytics.schemas.labels import FeedbackLabels
from ulasis.analytics.sentiment import classify_sentiment
from ulasis.analytics.topics import detect_topics

logger = logging.getLogger(__name__)


class KeywordClassifier:
    name = "keyword"

    async def classify(self, comment: str | None, rating: int | None = None) -> FeedbackLabels:
        return FeedbackLabels(
            sentiment=classify_sentiment(comment),
            topics=detect_topics(comment),
        )


class LLMClassifier:
    """Asks an OpenAI-compatible model for structured labels.

    Falls back to the keyword heuristic when the comment is empty or the
    provider call fails, so review intake never depends on the LLM being up.
    """

    name = "llm"

    def __init__(self, client: AsyncOpenAI, model_name: str, provider: str | None = None):
        self.client = client
        self.model_name = model_name
        self.provider = provider or get_provider(str(client.base_url))
        self.fallback = KeywordClassifier()

    async def classify(self, comment: str | None, rating: int | None = None) -> FeedbackLabels:
        if not comment or not comment.strip():
            return await self.fallback.classify(comment, rating)

        log = [{
            "role": "user",
            "content": CLASSIFY_PROMPT.format(comment=comment, rating=rating if rating is not None else "unknown"),
        }]
        try:
            return await get_so_completion(
                log=log,
                model_name=self.model_name,
                client=self.client,
                pydantic_model=FeedbackLabels,
                provider_name=self.provider,
            )
        except Exception as e:
            logger.exception("LLM classification failed, using keywords: %s", e)
            return await self.fallback.classify(comment, rating)


def get_classifier(backend: str | None = None):
    backend = backend or settings.SENTIMENT_BACKEND
    if backend == "keyword":
        return KeywordClassifier()
    if backend == "llm":
        return LLMClassifier(OPENAI_CLIENT, settings.MODEL_NAME)
    raise ValueError(f"Unknown sentiment backend: {backend!r}. Expected 'keyword' or 'llm'.")
