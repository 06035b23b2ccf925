"""
JWT session tokens, the auth cookie and the handler-level access gate.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import jsonify, request

from healthapp.config import (
    AUTH_COOKIE_NAME,
    IS_PRODUCTION,
    ROLES,
    SECRET_KEY,
    TOKEN_ALGORITHM,
    TOKEN_EXPIRY_DAYS,
)
from healthapp.models import Principal

TOKEN_LIFETIME = timedelta(days=TOKEN_EXPIRY_DAYS)
COOKIE_MAX_AGE = int(TOKEN_LIFETIME.total_seconds())

_CLAIMS = ("userId", "email", "role", "name")


# ── Token service ────────────────────────────────────────────────────

def principal_from_user(user: Dict[str, Any]) -> Principal:
    """Build the Principal for a credential record at issuance time."""
    return Principal(
        subject_id=str(user["id"]),
        email=user["email"],
        role=user["role"],
        display_name=user["name"],
    )


def issue_token(principal: Principal, issued_at: Optional[datetime] = None) -> str:
    """Generate a signed session token for *principal*."""
    iat = issued_at or datetime.now(timezone.utc)
    payload = {
        "userId": principal.subject_id,
        "email": principal.email,
        "role": principal.role,
        "name": principal.display_name,
        "iat": iat,
        "exp": iat + TOKEN_LIFETIME,
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str) -> Optional[Principal]:
    """Verify a session token and return its Principal (or None)."""
    if not token or not isinstance(token, str):
        return None
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None

    if not all(isinstance(payload.get(c), str) for c in _CLAIMS):
        return None
    if payload["role"] not in ROLES or not payload["userId"].isdigit():
        return None

    return Principal(
        subject_id=payload["userId"],
        email=payload["email"],
        role=payload["role"],
        display_name=payload["name"],
    )


# ── Session accessor ─────────────────────────────────────────────────

def current_session() -> Optional[Principal]:
    """Principal of the active request, read from the auth cookie."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        return None
    return verify_token(token)


def establish_session(response, token: str):
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=COOKIE_MAX_AGE,
        path="/",
        secure=IS_PRODUCTION,
        httponly=True,
        samesite="Lax",
    )
    return response


def clear_session(response):
    # Only the client copy goes away; the token itself stays valid until exp.
    response.delete_cookie(
        AUTH_COOKIE_NAME,
        path="/",
        secure=IS_PRODUCTION,
        httponly=True,
        samesite="Lax",
    )
    return response


# ── Handler-level gate ───────────────────────────────────────────────

def require_session(*roles: str, message: str = "Unauthorized"):
    """
    Decorator that protects an API handler with a valid session and,
    when *roles* are given, membership in that allowed-role set.

    A missing session and a wrong role produce the same 401 response.
    The Principal is attached to the request as ``request.principal``.
    """
    unknown = set(roles) - set(ROLES)
    if unknown:
        raise ValueError(f"Unknown role(s) in allowed set: {', '.join(sorted(unknown))}")
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            principal = current_session()
            if principal is None or (allowed and principal.role not in allowed):
                return jsonify({"error": message}), 401

            request.principal = principal
            return f(*args, **kwargs)

        return decorated

    return decorator
