from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import jwt

from app.config import settings

@dataclass(frozen=True)
class Identity:
    uid: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    claims: dict = field(default_factory=dict)

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def issue_access_token(uid: str, email: str | None = None, name: str | None = None) -> str:
    iat = now_utc()
    exp = iat + timedelta(minutes=settings.jwt_expires_minutes)
    payload = {
        "sub": str(uid),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(iat.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")

def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )

def verify_token(token: str) -> Identity:
    """Decode a bearer token into the caller identity; raises jwt.PyJWTError or KeyError."""
    payload = decode_access_token(token)
    uid = payload["sub"]
    if not uid:
        raise KeyError("sub")
    return Identity(
        uid=str(uid),
        email=payload.get("email"),
        name=payload.get("name"),
        picture=payload.get("picture"),
        claims=payload,
    )
