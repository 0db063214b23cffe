"""Authentication: password hashing, session tokens, and FastAPI dependencies."""
import hashlib
import hmac
import logging
import os
import time

import bcrypt as _bcrypt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .db import get_db
from .i18n import normalize_locale, DEFAULT_LOCALE
from .models import User
from .relationship_types import create_preloaded_relationship_types

logger = logging.getLogger(__name__)

COOKIE_SECRET = os.environ.get("COOKIE_SECRET", "")
SESSION_MAX_AGE = int(os.environ.get("SESSION_MAX_AGE", str(30 * 24 * 3600)))
SESSION_COOKIE = "session"


# ── Password hashing ──

def validate_password(password: str):
    """Validate password meets minimum requirements."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if len(password.encode("utf-8")) > 72:
        raise ValueError("Password is too long (max 72 bytes)")


def hash_password(password: str) -> str:
    validate_password(password)
    pw_bytes = password.encode("utf-8")
    return _bcrypt.hashpw(pw_bytes, _bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# ── Session tokens ──

def _sign(payload: str) -> str:
    return hmac.new(COOKIE_SECRET.encode(), payload.encode(), hashlib.sha256).hexdigest()


def create_session_token(user_id: str, now: float | None = None) -> str:
    """Create an HMAC-signed session token: user_id:timestamp:signature."""
    ts = str(int(now if now is not None else time.time()))
    payload = f"{user_id}:{ts}"
    return f"{payload}:{_sign(payload)}"


def verify_session_token(token: str | None, now: float | None = None) -> str | None:
    """Verify session token. Returns user_id if valid and not expired, None otherwise."""
    if not token or not COOKIE_SECRET:
        return None
    parts = token.split(":")
    if len(parts) != 3:
        return None
    user_id, ts, sig = parts
    if not hmac.compare_digest(sig, _sign(f"{user_id}:{ts}")):
        return None
    try:
        issued = int(ts)
    except ValueError:
        return None
    current = now if now is not None else time.time()
    if current - issued > SESSION_MAX_AGE:
        return None
    return user_id


# ── User accounts ──

def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def create_user(db: Session, email: str, name: str, password: str,
                locale: str = DEFAULT_LOCALE) -> User:
    """Create an account and seed its relationship-type catalogue."""
    email = email.strip().lower()
    if get_user_by_email(db, email):
        raise ValueError("A user with this email already exists")
    user = User(email=email, name=name, password_hash=hash_password(password),
                locale=normalize_locale(locale) or DEFAULT_LOCALE)
    db.add(user)
    db.flush()
    create_preloaded_relationship_types(db, user.id)
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Verify email+password. Returns the user or None."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        logger.warning("Failed login for user %s", user.id)
        return None
    return user


def update_locale(db: Session, user: User, language: str) -> User:
    locale = normalize_locale(language)
    if locale is None:
        raise ValueError(f"Unsupported language: {language}")
    user.locale = locale
    db.commit(); db.refresh(user)
    logger.info("User %s switched locale to %s", user.id, locale)
    return user


def update_profile(db: Session, user: User, name: str) -> User:
    name = name.strip()
    if not name:
        raise ValueError("Name is required")
    user.name = name
    db.commit(); db.refresh(user)
    return user


# ── FastAPI dependencies ──

def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """FastAPI dependency: extract user from session cookie. Raises 401 if not authenticated."""
    user_id = verify_session_token(request.cookies.get(SESSION_COOKIE))
    if not user_id:
        raise HTTPException(401, "Not authenticated")
    user = db.get(User, user_id)
    if not user:
        logger.warning("Session token for unknown user %s", user_id)
        raise HTTPException(401, "User not found")
    return user
