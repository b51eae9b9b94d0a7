"""
verify.py
---------
Purpose:
    JWT verification using Supabase JWKS (ES256), plus the shared-secret check
    that guards the manual match processing trigger.

Notes:
    - Fetches JWKS from Supabase and caches keys.
    - Provides `auth_dependency` for protected routes.
    - Provides `cron_secret_dependency` for scheduler-only routes.
"""

import hmac

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from app.config import settings
from app.infrastructure.observability.logging import get_logger

SUPABASE_AUDIENCE = "authenticated"

logger = get_logger(__name__)

_jwk_client = PyJWKClient(settings.jwks_url())
_security = HTTPBearer()


def verify_jwt(token: str) -> dict:
    try:
        signing_key = _jwk_client.get_signing_key_from_jwt(token)
        decoded = jwt.decode(
            token,
            signing_key.key,
            algorithms=["ES256"],
            audience=SUPABASE_AUDIENCE,
            options={"verify_exp": True},
        )
        return decoded
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def auth_dependency(credentials: HTTPAuthorizationCredentials = Depends(_security)) -> dict:
    token = credentials.credentials
    return verify_jwt(token)


def cron_secret_dependency(x_cron_secret: str | None = Header(default=None)) -> None:
    """Accept the request only if X-Cron-Secret matches MATCH_PROCESSING_SECRET."""
    expected = settings.MATCH_PROCESSING_SECRET
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Manual match processing is not configured",
        )

    if not x_cron_secret or not hmac.compare_digest(
        x_cron_secret.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Rejected match processing trigger", reason="bad_secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid cron secret")
