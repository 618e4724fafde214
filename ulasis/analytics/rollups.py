"""Dashboard rollups over review records.

Every function takes plain review dicts (`rating`, `comment`, `sentiment`,
`topics`, `status`, `source`, `created_at`) so stored reviews and demo data
go through the same code. Empty input always yields zeros.
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable

from ulasis.db import utcnow, as_utc, to_utc
from ulasis.analytics.utils import round_half_up, round_half_up_to, value_of

RANGES = ("day", "week", "month", "year")

RANGE_SPANS = {
    "day": timedelta(hours=24),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}

# range -> (number of buckets, bucket width)
TREND_BUCKETS = {
    "day": (24, timedelta(hours=1)),
    "week": (7, timedelta(days=1)),
    "month": (30, timedelta(days=1)),
    "year": (52, timedelta(days=7)),
}

SENTIMENTS = ("positive", "neutral", "negative")


def _check_range(range_: str) -> None:
    if range_ not in RANGES:
        raise ValueError(f"range must be one of {', '.join(RANGES)}")


def filter_by_range(reviews: Iterable[dict], range_: str = "week", now: datetime | None = None) -> list[dict]:
    _check_range(range_)
    now = to_utc(now) or utcnow()
    start = now - RANGE_SPANS[range_]
    return [r for r in reviews if start <= as_utc(r["created_at"]) <= now]


def sentiment_distribution(reviews: list[dict]) -> dict:
    total = len(reviews)
    if total == 0:
        return {s: 0 for s in SENTIMENTS}
    counts = Counter(value_of(r["sentiment"]) for r in reviews)
    return {s: round_half_up(counts.get(s, 0) / total * 100) for s in SENTIMENTS}


def topic_analysis(reviews: list[dict], limit: int = 5) -> dict:
    positive: Counter = Counter()
    negative: Counter = Counter()
    for r in reviews:
        sentiment = value_of(r["sentiment"])
        for topic in r.get("topics") or []:
            if sentiment == "positive":
                positive[topic] += 1
            elif sentiment == "negative":
                negative[topic] += 1
    return {
        "positive": [{"topic": t, "count": c} for t, c in positive.most_common(limit)],
        "negative": [{"topic": t, "count": c} for t, c in negative.most_common(limit)],
    }


def review_sources(reviews: list[dict]) -> list[dict]:
    counts = Counter(r.get("source") or "unknown" for r in reviews)
    return [{"name": name, "value": value} for name, value in counts.most_common()]


def _trend_grid(range_: str, now: datetime) -> tuple[datetime, timedelta, list[str]]:
    """Start of the first bucket, bucket width and the bucket labels."""
    count, step = TREND_BUCKETS[range_]
    if range_ == "day":
        anchor = now.replace(minute=0, second=0, microsecond=0)
        fmt = "%H:00"
    else:
        anchor = now.replace(hour=0, minute=0, second=0, microsecond=0)
        fmt = "%Y-%m-%d"
    first = anchor - (count - 1) * step
    return first, step, [(first + i * step).strftime(fmt) for i in range(count)]


def _bucket_index(created: datetime, first: datetime, step: timedelta, count: int, now: datetime) -> int | None:
    created = as_utc(created)
    if created < first or created > now:
        return None
    index = int((created - first) / step)
    return index if index < count else None


def sentiment_trend(reviews: list[dict], range_: str = "week", now: datetime | None = None) -> list[dict]:
    """Per-bucket sentiment counts ending at `now`.

    `day` gives 24 hourly buckets, `week`/`month` 7/30 daily buckets and
    `year` 52 weekly buckets. Buckets are aligned to the hour (day) or to
    midnight UTC (everything else).
    """
    _check_range(range_)
    now = to_utc(now) or utcnow()
    first, step, labels = _trend_grid(range_, now)
    buckets = [{"date": label, "positive": 0, "neutral": 0, "negative": 0} for label in labels]
    for r in reviews:
        index = _bucket_index(r["created_at"], first, step, len(buckets), now)
        if index is None:
            continue
        sentiment = value_of(r["sentiment"])
        if sentiment in SENTIMENTS:
            buckets[index][sentiment] += 1
    return buckets


def rating_trend(reviews: list[dict], range_: str = "week", now: datetime | None = None) -> list[dict]:
    """Average rating (two decimals) and review count per bucket, on the
    same grid as `sentiment_trend`. Empty buckets report 0."""
    _check_range(range_)
    now = to_utc(now) or utcnow()
    first, step, labels = _trend_grid(range_, now)
    ratings: list[list[int]] = [[] for _ in labels]
    for r in reviews:
        index = _bucket_index(r["created_at"], first, step, len(labels), now)
        if index is not None:
            ratings[index].append(r["rating"])
    return [
        {
            "date": label,
            "average_rating": round_half_up_to(sum(values) / len(values), 2) if values else 0,
            "count": len(values),
        }
        for label, values in zip(labels, ratings)
    ]


def average_rating(ratings: list[int]) -> float:
    """Mean rating to one decimal, halves rounded up."""
    return round_half_up_to(sum(ratings) / len(ratings), 1) if ratings else 0


def kpis(reviews: list[dict]) -> dict:
    total = len(reviews)
    statuses = Counter(value_of(r.get("status") or "new") for r in reviews)
    return {
        "total_reviews": total,
        "average_rating": average_rating([r["rating"] for r in reviews]),
        "status_counts": {s: statuses.get(s, 0) for s in ("new", "in_progress", "resolved")},
    }


def dashboard(reviews: list[dict], range_: str = "week", now: datetime | None = None) -> dict:
    now = to_utc(now) or utcnow()
    filtered = filter_by_range(reviews, range_, now)
    return {
        "range": range_,
        "generated_at": now,
        "kpis": kpis(filtered),
        "sentiment_distribution": sentiment_distribution(filtered),
        "topic_analysis": topic_analysis(filtered),
        "review_sources": review_sources(filtered),
        "sentiment_trend": sentiment_trend(filtered, range_, now),
        "rating_trend": rating_trend(filtered, range_, now),
    }
