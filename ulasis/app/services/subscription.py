"""Plan-based feature gating.

A static table of plans, their features and usage limits. `None` or `-1`
limits mean unlimited. Demo plan names (`gratis`, `starter`, `bisnis`) are
accepted everywhere and resolve to the regular plans.
"""
from ulasis.app.core.config import settings

PLAN_ALIASES = {"gratis": "free", "bisnis": "business"}

FEATURES = ("sentiment_analysis", "actionable_insights", "real_time_analytics", "customer_journey", "csv_export")

PLAN_FEATURES: dict[str, dict[str, bool]] = {
    "free": {
        "sentiment_analysis": True,
        "actionable_insights": False,
        "real_time_analytics": False,
        "customer_journey": False,
        "csv_export": False,
    },
    "starter": {
        "sentiment_analysis": True,
        "actionable_insights": True,
        "real_time_analytics": False,
        "customer_journey": False,
        "csv_export": True,
    },
    "business": {feature: True for feature in FEATURES},
    "admin": {feature: True for feature in FEATURES},
}

PLAN_LIMITS: dict[str, dict[str, int | None]] = {
    "free": {"questionnaires": 1, "responses": 50, "exports": 5, "daily_requests": 10, "monthly_requests": 100},
    "starter": {"questionnaires": 5, "responses": 500, "exports": 50, "daily_requests": 100, "monthly_requests": 1000},
    "business": {"questionnaires": None, "responses": None, "exports": None, "daily_requests": -1, "monthly_requests": -1},
    "admin": {"questionnaires": None, "responses": None, "exports": None, "daily_requests": -1, "monthly_requests": -1},
}

UPGRADE_TARGET = {"free": "starter", "starter": "business"}

FEATURE_LABELS = {
    "sentiment_analysis": "sentiment analysis",
    "actionable_insights": "actionable insights",
    "real_time_analytics": "real-time analytics",
    "customer_journey": "customer journey mapping",
    "csv_export": "data export",
}


def normalize_plan(plan) -> str:
    plan = getattr(plan, "value", plan) or "free"
    plan = PLAN_ALIASES.get(plan, plan)
    return plan if plan in PLAN_FEATURES else "free"


def is_unlimited(limit: int | None) -> bool:
    return limit is None or limit < 0


def check_feature_access(plan, feature: str) -> bool:
    if feature not in FEATURES:
        raise ValueError(f"Unknown feature: {feature!r}")
    return PLAN_FEATURES[normalize_plan(plan)][feature]


def get_upgrade_message(plan, feature: str) -> str | None:
    """Message shown when `feature` is locked on `plan`, None if it is available."""
    if check_feature_access(plan, feature):
        return None
    label = FEATURE_LABELS[feature]
    # the cheapest plan that unlocks the feature
    target = next(c for c in ("starter", "business") if PLAN_FEATURES[c][feature])
    return f"Upgrade to the {target.capitalize()} plan to unlock {label} in {settings.APP_NAME}."


def require_feature(plan, feature: str) -> None:
    if not check_feature_access(plan, feature):
        raise PermissionError(get_upgrade_message(plan, feature))


def plan_status(plan) -> dict:
    plan = normalize_plan(plan)
    return {
        "plan": plan,
        "features": dict(PLAN_FEATURES[plan]),
        "limits": dict(PLAN_LIMITS[plan]),
        "upgrade_to": UPGRADE_TARGET.get(plan),
    }


def check_usage_limit(plan, resource: str, used: int) -> None:
    """Raise PermissionError once `used` has reached the plan's limit for `resource`."""
    plan = normalize_plan(plan)
    limit = PLAN_LIMITS[plan][resource]
    if is_unlimited(limit) or used < limit:
        return
    target = UPGRADE_TARGET.get(plan)
    message = f"Monthly {resource} limit of {limit} reached on the {plan.capitalize()} plan."
    if target:
        message += f" Upgrade to the {target.capitalize()} plan for more."
    raise PermissionError(message)
