import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import Response
from werkzeug.security import check_password_hash, generate_password_hash

from wodlog import config, store

MIN_PASSWORD_LENGTH = 8


def verify_password(password: str, stored: str) -> bool:
    try:
        return check_password_hash(stored, password)
    except ValueError:
        return False


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {"id": user.get("id"), "email": user.get("email"), "name": user.get("name")}


def register_user(payload: dict[str, Any]) -> dict[str, Any]:
    email = str(payload.get("email", "")).strip().lower()
    password = str(payload.get("password", ""))
    name = str(payload.get("name", "")).strip() or None
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    return store.insert_user({"email": email, "name": name, "password_hash": generate_password_hash(password)})


def authenticate(payload: dict[str, Any]) -> dict[str, Any]:
    email = str(payload.get("email", "")).strip().lower()
    password = str(payload.get("password", ""))
    user = store.get_user_by_email(email) if email else None
    if user is None or not verify_password(password, str(user.get("password_hash", ""))):
        raise HTTPException(status_code=401, detail="Invalid email or password.")
    return user


def start_session(response: Response, user: dict[str, Any]) -> dict[str, Any]:
    token = secrets.token_urlsafe(32)
    expires = datetime.now(timezone.utc) + timedelta(hours=config.SESSION_TTL_HOURS)
    session = store.insert_session(
        {
            "token": token,
            "user_id": user["id"],
            "expires": expires.isoformat(timespec="seconds").replace("+00:00", "Z"),
        }
    )
    response.set_cookie(
        config.SESSION_COOKIE,
        token,
        max_age=config.SESSION_TTL_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
    )
    return session


def end_session(request: Request, response: Response) -> None:
    token = request.cookies.get(config.SESSION_COOKIE, "")
    if token:
        store.delete_session(token)
    response.delete_cookie(config.SESSION_COOKIE)


def optional_user(request: Request) -> dict[str, Any] | None:
    token = request.cookies.get(config.SESSION_COOKIE, "")
    if not token:
        return None
    session = store.get_session(token)
    if session is None or str(session.get("expires", "")) <= store.utc_now():
        return None
    return store.get_user(str(session.get("user_id")))


def require_user(request: Request) -> dict[str, Any]:
    user = optional_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="UNAUTHORIZED")
    return user
