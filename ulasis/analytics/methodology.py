from ulasis.analytics.keywords import (
    POSITIVE_WORDS_ID, NEGATIVE_WORDS_ID, NEUTRAL_WORDS_ID,
    POSITIVE_WORDS_EN, NEGATIVE_WORDS_EN,
    TOPIC_KEYWORDS, TOPIC_DESCRIPTIONS,
)


def methodology() -> dict:
    """Plain description of how labels on the dashboard are produced."""
    return {
        "sentiment": {
            "method": "keyword_count",
            "description": (
                "Each comment is split into words. Positive and negative keyword hits are counted; "
                "the larger count wins and a tie (including no hits) is neutral."
            ),
            "keywords": {
                "positive": {"id": POSITIVE_WORDS_ID, "en": POSITIVE_WORDS_EN},
                "negative": {"id": NEGATIVE_WORDS_ID, "en": NEGATIVE_WORDS_EN},
                "neutral": {"id": NEUTRAL_WORDS_ID},
            },
        },
        "topics": {
            "method": "rule_based",
            "description": "A review is tagged with every topic whose trigger words appear in the comment.",
            "categories": [
                {"name": name, "description": TOPIC_DESCRIPTIONS[name], "keywords": words}
                for name, words in TOPIC_KEYWORDS.items()
            ],
        },
        "rollups": {
            "percentages": "rounded half up, so the three sentiment shares may not add up to exactly 100",
            "ranges": {"day": "last 24 hours", "week": "last 7 days", "month": "last 30 days", "year": "last 365 days"},
            "empty_data": "all counts are zero, no placeholder data is shown",
        },
    }
