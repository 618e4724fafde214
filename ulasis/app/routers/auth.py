"""Registration and bearer-token login for dashboard users."""
# app/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select

from ulasis.app.core.config import settings
from ulasis.app.core.security import hash_password, verify_password, get_current_user
from ulasis.app.services.tokens import sign_token
from ulasis.app.schemas.user import UserCreate, UserOut, TokenIn, TokenOut
from ulasis.db.session import get_db
from ulasis.db.models import User

router = APIRouter(prefix=f"{settings.API_PREFIX}/auth", tags=["auth"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Create a dashboard account.

    Errors:
        400: The email is already registered.
    """
    email = user_data.email.strip().lower()
    existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="User with this email already exists")

    data = user_data.model_dump(exclude={"password", "email"})
    user = User(email=email, password_hash=hash_password(user_data.password), **data)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/token", response_model=TokenOut)
async def login(credentials: TokenIn, db: Session = Depends(get_db)):
    """Exchange email and password for a signed bearer token.

    Errors:
        401: Unknown email or wrong password.
    """
    user = db.execute(
        select(User).where(User.email == credentials.email.strip().lower())
    ).scalar_one_or_none()
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    token = sign_token({"sub": str(user.user_id), "plan": user.subscription_plan.value})
    return TokenOut(access_token=token, expires_in=settings.TOKEN_TTL)


@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return user
