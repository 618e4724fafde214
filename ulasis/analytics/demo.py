"""Synthetic dashboard data for the demo mode.

Reviews are built from canned comments and spread over the last 30 days
before `now`. Passing a `seed` makes the output repeatable.
"""
import random
from datetime import datetime, timedelta

from ulasis.db import utcnow, as_utc
from ulasis.analytics.sentiment import sentiment_from_rating
from ulasis.analytics.topics import detect_topics

DEMO_PLANS = ("gratis", "starter", "bisnis")
DEMO_PLAN_LIMITS = {"gratis": 15, "starter": 30, "bisnis": None}
DEMO_REVIEW_COUNT = 50

DEMO_SOURCES = ("qr_scan", "google_maps", "gojek")
# peak hours of a cafe
DEMO_HOURS = (8, 9, 12, 13, 16, 17, 18)

CANNED_COMMENTS = [
    (5, "Kopi susu gula arennya mantap banget, tempatnya cozy buat ngumpul sama teman."),
    (3, "Cappuccino lumayan, pelayanannya ramah tapi agak lama pas weekend rame. Tambah kasir dong."),
    (2, "AC di ruangan dalam kurang dingin, jadi pengap dan tidak nyaman."),
    (5, "Croissant almond juara! Rasa kopi hitamnya juga enak."),
    (4, "Barista helpful, dikasih rekomendasi kopi sesuai selera. Puas!"),
    (1, "Parkir penuh terus, muter 15 menit tidak dapat. Kecewa."),
    (5, "Wifi kencang banget, banyak colokan. Perfect buat kerja."),
    (3, "Musik agak terlalu kencang, berisik buat ngobrol."),
    (2, "Toilet lantai 2 kotor, sabun habis. Harus lebih bersih."),
    (4, "Menu variasi banyak, harga masih masuk akal."),
    (1, "Garpu masih ada sisa makanan, jorok banget. Buruk."),
    (3, "Harga lumayan mahal buat kopi di area ini, tapi suasana nyaman."),
    (5, "Promo buy 1 get 1 di weekday mantap, jadi lebih hemat."),
    (2, "Antrian panjang, kasir cuma satu yang buka. Pelayanan lambat."),
    (4, "Toilet bersih dan wangi, fasilitas terawat."),
]

DEMO_QUESTIONNAIRES = [
    {
        "id": 1,
        "title": "Umpan Balik Umum Pelanggan",
        "description": "Kuesioner untuk mengumpulkan umpan balik umum setelah kunjungan.",
        "questions": [
            {"question_text": "Seberapa puas Anda dengan pelayanan kami?", "question_type": "rating_5"},
            {"question_text": "Apa yang bisa kami tingkatkan?", "question_type": "long_text"},
        ],
    },
    {
        "id": 2,
        "title": "Kuesioner Kebersihan Outlet",
        "description": "Umpan balik khusus mengenai kebersihan di lokasi kami.",
        "questions": [
            {"question_text": "Bagaimana penilaian Anda tentang kebersihan area makan?", "question_type": "rating_5"},
            {"question_text": "Apakah toilet bersih dan terawat?", "question_type": "yes_no"},
        ],
    },
    {
        "id": 3,
        "title": "Survei Minuman Favorit",
        "description": "Bantu kami mengetahui minuman apa yang paling Anda sukai.",
        "questions": [
            {"question_text": "Minuman apa yang paling sering Anda pesan?", "question_type": "multiple_choice",
             "options": ["Kopi Hitam", "Cappuccino", "Latte", "Non-Kopi"]},
            {"question_text": "Beri kami rating untuk varian musiman terbaru.", "question_type": "rating_10"},
        ],
    },
]


def _status_for(rating: int, days_old: int) -> str:
    if rating >= 4:
        return "resolved" if days_old > 2 else "new"
    if rating == 3:
        return "in_progress" if days_old > 1 else "new"
    return "in_progress" if days_old > 3 else "new"


def generate_demo_reviews(count: int = DEMO_REVIEW_COUNT, now: datetime | None = None, seed: int | None = None) -> list[dict]:
    rng = random.Random(seed)
    now = as_utc(now) or utcnow()
    reviews = []
    for i in range(count):
        rating, comment = rng.choice(CANNED_COMMENTS)
        days_old = rng.randrange(30)
        created = (now - timedelta(days=days_old)).replace(
            hour=rng.choice(DEMO_HOURS), minute=rng.randrange(60), second=0, microsecond=0,
        )
        if created > now:
            created -= timedelta(days=1)
            days_old += 1
        topics = detect_topics(comment)
        reviews.append({
            "id": i + 1,
            "rating": rating,
            "comment": comment,
            "sentiment": sentiment_from_rating(rating),
            "topics": topics,
            "tags": topics[:1],
            "status": _status_for(rating, days_old),
            "source": rng.choice(DEMO_SOURCES),
            "questionnaire_id": rng.choice(DEMO_QUESTIONNAIRES)["id"],
            "created_at": created,
        })
    reviews.sort(key=lambda r: r["created_at"], reverse=True)
    return reviews


def demo_reviews_for_plan(plan: str, now: datetime | None = None, seed: int | None = None) -> list[dict]:
    if plan not in DEMO_PLAN_LIMITS:
        raise ValueError(f"demo plan must be one of {', '.join(DEMO_PLANS)}")
    reviews = generate_demo_reviews(now=now, seed=seed)
    limit = DEMO_PLAN_LIMITS[plan]
    return reviews if limit is None else reviews[:limit]
