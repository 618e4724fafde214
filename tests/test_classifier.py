import asyncio

import pytest

from ulasis.analytics import classifier as classifier_module
from ulasis.analytics.classifier import KeywordClassifier, LLMClassifier, get_classifier
from ulasis.analytics.schemas.labels import FeedbackLabels


class FakeClient:
    base_url = "https://openrouter.ai/api/v1"


def test_keyword_classifier():
    labels = asyncio.run(KeywordClassifier().classify("Kopi enak, kasir ramah", 5))
    assert labels.sentiment == "positive"
    assert labels.topics == ["Pelayanan", "Kualitas Produk"]


def test_llm_classifier_uses_structured_answer(monkeypatch):
    calls = []

    async def fake_completion(log, model_name, client, pydantic_model, provider_name):
        calls.append((model_name, provider_name, log[0]["content"]))
        return pydantic_model(sentiment="negative", topics=["Harga"])

    monkeypatch.setattr(classifier_module, "get_so_completion", fake_completion)
    llm = LLMClassifier(FakeClient(), "test-model")
    labels = asyncio.run(llm.classify("Harganya kemahalan", 2))

    assert labels == FeedbackLabels(sentiment="negative", topics=["Harga"])
    assert calls[0][:2] == ("test-model", "openrouter")
    assert "Harganya kemahalan" in calls[0][2]


def test_llm_classifier_falls_back_on_error(monkeypatch):
    async def broken_completion(**kwargs):
        raise RuntimeError("provider down")

    monkeypatch.setattr(classifier_module, "get_so_completion", broken_completion)
    labels = asyncio.run(LLMClassifier(FakeClient(), "test-model").classify("Toilet kotor, buruk", 1))
    assert labels.sentiment == "negative"
    assert labels.topics == ["Fasilitas", "Kebersihan"]


def test_llm_classifier_skips_empty_comment(monkeypatch):
    async def unexpected(**kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(classifier_module, "get_so_completion", unexpected)
    labels = asyncio.run(LLMClassifier(FakeClient(), "test-model").classify("   ", 4))
    assert labels.sentiment == "neutral"
    assert labels.topics == []


def test_get_classifier():
    assert isinstance(get_classifier("keyword"), KeywordClassifier)
    assert isinstance(get_classifier("llm"), LLMClassifier)
    with pytest.raises(ValueError):
        get_classifier("magic")
