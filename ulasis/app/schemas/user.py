# app/schemas/user.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from ulasis.db.models import SubscriptionPlan


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    email: str
    first_name: str
    last_name: str | None = None
    business_name: str | None = None
    subscription_plan: SubscriptionPlan
    created_at: datetime | None = None


class UserCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    business_name: str | None = Field(None, max_length=255)
    subscription_plan: SubscriptionPlan = SubscriptionPlan.free


class TokenIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
