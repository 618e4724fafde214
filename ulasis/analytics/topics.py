from ulasis.analytics.keywords import TOPIC_KEYWORDS
from ulasis.analytics.sentiment import tokenize


def detect_topics(text: str | None) -> list[str]:
    """Topics whose trigger words occur in the text, in table order."""
    tokens = set(tokenize(text))
    if not tokens:
        return []
    return [topic for topic, words in TOPIC_KEYWORDS.items() if tokens.intersection(words)]
