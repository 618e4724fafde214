"""Keyword sentiment heuristics.

`classify_sentiment` is the coarse three-way label stored on every review.
`analyze_text_response` is the graded variant used for free-text answers,
it also produces a 1..5 score.
"""
import re

from ulasis.analytics.keywords import POSITIVE_WORDS, NEGATIVE_WORDS

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)

POSITIVE = "positive"
NEUTRAL = "neutral"
NEGATIVE = "negative"


def tokenize(text: str | None) -> list[str]:
    if not text:
        return []
    return _TOKEN_RE.findall(text.lower())


def count_keywords(text: str | None) -> tuple[int, int]:
    """Return (positive hits, negative hits) over whole-word tokens."""
    positive = negative = 0
    for token in tokenize(text):
        if token in POSITIVE_WORDS:
            positive += 1
        if token in NEGATIVE_WORDS:
            negative += 1
    return positive, negative


def classify_sentiment(text: str | None) -> str:
    positive, negative = count_keywords(text)
    if positive > negative:
        return POSITIVE
    if negative > positive:
        return NEGATIVE
    return NEUTRAL


def sentiment_from_rating(rating: int) -> str:
    if rating >= 4:
        return POSITIVE
    if rating == 3:
        return NEUTRAL
    return NEGATIVE


def analyze_text_response(text: str) -> dict:
    words = text.lower().split()
    positive = sum(1 for w in words if w in POSITIVE_WORDS)
    negative = sum(1 for w in words if w in NEGATIVE_WORDS)
    total = positive + negative

    sentiment = NEUTRAL
    score = 3.0
    if total > 0:
        ratio = positive / total
        if ratio >= 0.7:
            sentiment, score = POSITIVE, 4.5
        elif ratio >= 0.4:
            sentiment, score = "slightly_positive", 3.5
        elif ratio <= 0.3:
            sentiment, score = NEGATIVE, 1.5
        else:
            sentiment, score = "slightly_negative", 2.5

    exclamations = text.count("!")
    caps_ratio = sum(1 for c in text if "A" <= c <= "Z") / len(text) if text else 0.0

    # shouting amplifies whichever polarity is already there
    if exclamations > 2:
        if sentiment == POSITIVE:
            score = min(5.0, score + 0.5)
        elif sentiment == NEGATIVE:
            score = max(1.0, score - 0.5)
    if caps_ratio > 0.5 and len(text) > 10:
        if sentiment == POSITIVE:
            score = min(5.0, score + 0.3)
        elif sentiment == NEGATIVE:
            score = max(1.0, score - 0.3)

    return {
        "sentiment": sentiment,
        "rating_score": round(score, 2),
        "positive_words": positive,
        "negative_words": negative,
        "word_count": len(words),
        "exclamation_count": exclamations,
        "all_caps_ratio": round(caps_ratio, 2),
    }
