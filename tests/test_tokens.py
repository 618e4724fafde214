from ulasis.app.services.tokens import sign_token, verify_token
from ulasis.app.core.security import hash_password, verify_password


def test_roundtrip():
    data = verify_token(sign_token({"sub": "42"}))
    assert data["sub"] == "42"
    assert "exp" in data


def test_tampered_token():
    token = sign_token({"sub": "42"})
    raw, sig = token.split(".")
    forged = sign_token({"sub": "1"}).split(".")[0]
    assert verify_token(f"{forged}.{sig}") is None
    assert verify_token(raw) is None
    assert verify_token("garbage") is None


def test_expired_token():
    assert verify_token(sign_token({"sub": "42"}, ttl_sec=-10)) is None


def test_password_hashing():
    stored = hash_password("rahasia123")
    assert stored != "rahasia123"
    assert verify_password("rahasia123", stored)
    assert not verify_password("salah", stored)
    assert not verify_password("rahasia123", "not-a-hash")
