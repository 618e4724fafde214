#!/usr/bin/env python
"""Fill the database with a demo account, questionnaires, QR codes and reviews.

Log in afterwards with demo@ulasis.id / demo12345.
"""
from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select  # noqa: E402

from ulasis.db import Base  # noqa: E402
from ulasis.db.session import LocalSession, engine  # noqa: E402
from ulasis.db.models import User, Review, SubscriptionPlan, Sentiment, ReviewStatus  # noqa: E402
from ulasis.analytics.demo import DEMO_QUESTIONNAIRES, generate_demo_reviews  # noqa: E402
from ulasis.app.core.security import hash_password  # noqa: E402
from ulasis.app.services.questionnaires import create_questionnaire  # noqa: E402
from ulasis.app.services.qr_codes import create_qr_code  # noqa: E402

DEMO_EMAIL = "demo@ulasis.id"
DEMO_PASSWORD = "demo12345"
DEMO_LOCATIONS = ("Meja Kasir", "Area Outdoor")


def get_or_create_user(db):
    user = db.execute(select(User).where(User.email == DEMO_EMAIL)).scalar_one_or_none()
    if user:
        return user, False
    user = User(
        email=DEMO_EMAIL,
        first_name="Demo",
        business_name="Kopi Nusantara",
        password_hash=hash_password(DEMO_PASSWORD),
        subscription_plan=SubscriptionPlan.business,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True


def main():
    Base.metadata.create_all(bind=engine)
    db = LocalSession()
    try:
        user, created = get_or_create_user(db)
        if not created:
            print(f"Demo user already exists (user_id={user.user_id}), nothing to do")
            return

        questionnaires = []
        for item in DEMO_QUESTIONNAIRES:
            questionnaires.append(create_questionnaire(
                db, user,
                {"title": item["title"], "description": item["description"]},
                item["questions"],
            ))

        qr_codes = [create_qr_code(db, questionnaires[0], {"location_tag": location}) for location in DEMO_LOCATIONS]

        by_demo_id = {d["id"]: q for d, q in zip(DEMO_QUESTIONNAIRES, questionnaires)}
        for item in generate_demo_reviews(seed=42):
            questionnaire = by_demo_id[item["questionnaire_id"]]
            on_first = questionnaire is questionnaires[0] and item["source"] == "qr_scan"
            db.add(Review(
                user_id=user.user_id,
                questionnaire_id=questionnaire.questionnaire_id,
                qr_code_id=qr_codes[item["id"] % len(qr_codes)].qr_code_id if on_first else None,
                rating=item["rating"],
                comment=item["comment"],
                sentiment=Sentiment(item["sentiment"]),
                topics=item["topics"],
                tags=item["tags"],
                status=ReviewStatus(item["status"]),
                source=item["source"],
                created_at=item["created_at"],
            ))
            questionnaire.response_count += 1
        db.commit()

        print("Seeded demo data:")
        print(f"User:            {DEMO_EMAIL} / {DEMO_PASSWORD} (user_id={user.user_id})")
        print(f"Questionnaires:  {', '.join(str(q.questionnaire_id) for q in questionnaires)}")
        print(f"QR codes:        {', '.join(str(qr.qr_code_id) for qr in qr_codes)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
