"""Caller authentication for FastAPI.

Two trust boundaries:
- end users present a bearer JWT issued by the identity provider; the ``sub``
  claim is used as an opaque, stable user id
- the external scheduler (and admin tooling) presents a shared secret
"""

import secrets
from dataclasses import dataclass

import jwt as pyjwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sales_challenge.core.config import get_settings
from sales_challenge.core.exceptions import NotConfiguredError, UnauthorizedError

_bearer_scheme = HTTPBearer(auto_error=False)

CRON_SECRET_HEADER = "X-Cron-Secret"


@dataclass(frozen=True)
class AuthUser:
    """Authenticated user extracted from an identity provider JWT."""

    user_id: str
    claims: dict


def decode_user_jwt(token: str) -> AuthUser:
    """Verify and decode a user session JWT.

    Raises ``HTTPException(401)`` on any validation failure and
    ``HTTPException(500)`` when no verification secret is configured.
    """
    settings = get_settings()
    if not settings.auth_jwt_secret:
        raise HTTPException(status_code=500, detail="Authentication is misconfigured")

    options = {"verify_exp": True, "require": ["sub", "exp"]}
    try:
        payload = pyjwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience or None,
            options={**options, "verify_aud": bool(settings.auth_jwt_audience)},
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.MissingRequiredClaimError as exc:
        raise HTTPException(status_code=401, detail=f"Missing required claim: {exc}")
    except pyjwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid token: {exc}")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing sub claim")

    return AuthUser(user_id=str(sub), claims=payload)


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthUser:
    """FastAPI dependency that extracts and validates the user JWT.

    Usage::

        @router.post("/votes")
        async def vote(user: AuthUser = Depends(require_auth)):
            ...
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    user = decode_user_jwt(credentials.credentials)
    request.state.user_id = user.user_id
    return user


def verify_cron_secret(request: Request) -> None:
    """Check the scheduler's shared secret.

    Accepts the secret either in ``X-Cron-Secret`` or as a bearer token.
    Must run before any storage access.

    Raises:
        NotConfiguredError: No secret configured on this deployment
        UnauthorizedError: Secret missing or wrong
    """
    settings = get_settings()
    if not settings.cron_secret:
        raise NotConfiguredError("CRON_SECRET not set")

    presented = request.headers.get(CRON_SECRET_HEADER)
    if presented is None:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            presented = auth_header[len("Bearer "):]

    if not presented or not secrets.compare_digest(presented.encode(), settings.cron_secret.encode()):
        raise UnauthorizedError("Unauthorized")
