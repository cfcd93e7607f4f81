"""Caller authentication for the entity feedback API.

Callers authenticate with ``Authorization: Bearer <token>``. The token is
verified against the auth service's JWKS; its ``sub`` claim is the user
entity ref of the principal. The same token is forwarded to the catalog so
that catalog lookups are scoped to the caller.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError, jwt
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError

from entity_feedback.config import (
    get_auth_audience,
    get_auth_issuer,
    get_auth_jwks_url,
    get_dev_user_ref,
    is_auth_configured,
    is_dev_mode,
)
from entity_feedback.lib.context import set_current_user_ref
from entity_feedback.lib.exceptions import AuthenticationError, NotAllowedError

logger = logging.getLogger(__name__)

USER_PRINCIPAL = "user"
SERVICE_PRINCIPAL = "service"


@dataclass(frozen=True)
class Credentials:
    """Who is calling, and the token to act on their behalf."""

    principal_type: str
    user_entity_ref: Optional[str] = None
    subject: Optional[str] = None
    token: Optional[str] = None

    @property
    def is_user(self) -> bool:
        return self.principal_type == USER_PRINCIPAL and bool(self.user_entity_ref)


@lru_cache(maxsize=4)
def _get_jwks_client(jwks_url: str) -> PyJWKClient:
    """Cache one JWKS client per URL; PyJWKClient caches the keys itself."""
    logger.info('Initializing JWKS client for %s', jwks_url)
    return PyJWKClient(jwks_url)


def _read_bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def verify_token(token: str) -> dict:
    """Verify a caller token and return its claims.

    Raises:
        AuthenticationError: If verification is not configured or the token is invalid
    """
    jwks_url = get_auth_jwks_url()
    if not jwks_url:
        raise AuthenticationError("Authentication not configured")

    audience = get_auth_audience()
    try:
        signing_key = _get_jwks_client(jwks_url).get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            audience=audience,
            issuer=get_auth_issuer(),
            options={"verify_aud": audience is not None, "verify_at_hash": False},
        )
    except (JWTError, PyJWTError) as e:
        logger.error(f"Token validation failed: {e}")
        raise AuthenticationError("Invalid authentication token") from e


def credentials_from_claims(claims: dict, token: str) -> Credentials:
    """Map verified token claims to Credentials.

    A ``sub`` that is a user entity ref (``user:...``) is a user principal;
    anything else is treated as a service principal.
    """
    subject = claims.get("sub")
    if isinstance(subject, str) and subject.lower().startswith("user:"):
        return Credentials(
            principal_type=USER_PRINCIPAL,
            user_entity_ref=subject,
            subject=subject,
            token=token,
        )
    return Credentials(principal_type=SERVICE_PRINCIPAL, subject=subject, token=token)


async def get_credentials(request: Request) -> Credentials:
    """Resolve the caller's credentials.

    In DEV_MODE, returns a fixed dev user without requiring a token; any
    bearer token that was sent is still forwarded to the catalog.
    """
    token = _read_bearer_token(request)

    if is_dev_mode():
        logger.debug("DEV_MODE enabled - returning dev user (bypassing token verification)")
        credentials = Credentials(
            principal_type=USER_PRINCIPAL,
            user_entity_ref=get_dev_user_ref(),
            subject=get_dev_user_ref(),
            token=token,
        )
    else:
        if not token:
            raise AuthenticationError("Not authenticated")
        if not is_auth_configured():
            raise AuthenticationError("Authentication not configured")
        credentials = credentials_from_claims(verify_token(token), token)

    set_current_user_ref(credentials.user_entity_ref)
    return credentials


async def get_user_credentials(credentials: Credentials = Depends(get_credentials)) -> Credentials:
    """Like get_credentials, but only user principals are allowed.

    Raises:
        NotAllowedError: For service principals
    """
    if not credentials.is_user:
        raise NotAllowedError(
            f"This action requires a user principal, got {credentials.principal_type}",
            details={"principal_type": credentials.principal_type},
        )
    return credentials


def get_auth_dependency():
    """Get the auth dependency for read routes (any principal)."""
    return Depends(get_credentials)


def get_user_auth_dependency():
    """Get the auth dependency for write routes (user principals only)."""
    return Depends(get_user_credentials)
