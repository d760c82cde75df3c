import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlalchemy.orm import Session

from app.auth.tokens import Identity, verify_token
from app.config import settings
from app.db import get_db
from app.models.user import User
from app.rbac.errors import Unauthenticated

bearer = HTTPBearer(auto_error=False)

def get_identity(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> Identity:
    token = None
    if creds is not None and creds.scheme.lower() == "bearer":
        token = creds.credentials
    elif creds is None and settings.app_env == "dev" and settings.dev_bearer_token:
        logger.debug("Using development bearer token from settings")
        token = settings.dev_bearer_token

    if not token:
        raise Unauthenticated("missing bearer token")

    try:
        return verify_token(token)
    except (jwt.PyJWTError, KeyError) as e:
        logger.warning(f"Token verification failed: {e.__class__.__name__}: {e}")
        raise Unauthenticated("invalid token")

def ensure_user(db: Session, identity: Identity, display_name: str | None = None, photo_url: str | None = None) -> User:
    user = db.get(User, identity.uid)
    if user is None:
        user = User(
            id=identity.uid,
            email=(identity.email or "").lower().strip(),
            display_name=display_name or identity.name or "Anonymous User",
            photo_url=photo_url or identity.picture,
        )
        db.add(user)
        db.commit()
        logger.info(f"Created user profile {identity.uid}")
        return user

    email = (identity.email or "").lower().strip()
    if email and user.email != email:
        user.email = email
        db.commit()
    return user

def get_current_user(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
) -> User:
    return ensure_user(db, identity)
