"""
Bowling Chat - Authentication

- JWT is verified with the Supabase JWT secret (HS256, aud "authenticated")
- user_id is the `sub` claim
- The raw token is kept so SQL runs under the caller's row-level security
- DEV_USER_ID stands in for a missing token in local development only
"""

from typing import Optional
import logging

import jwt

from config.env import Settings, settings as default_settings
from services.types import AuthContext
from utils.errors import MissingConfigurationError, UnauthorizedError

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from "Bearer <token>", or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_jwt(token: str, secret: str) -> dict:
    """
    Decode and validate a Supabase user JWT.

    Returns decoded payload with:
    - sub (user_id)
    - email
    - exp (expiration)
    """
    if not secret:
        logger.error("[Auth] No JWT secret configured")
        raise MissingConfigurationError("Supabase JWT secret")

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience="authenticated",
            options={"verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired.")
    except jwt.InvalidTokenError as e:
        logger.warning(f"[Auth] JWT verification failed: {e}")
        raise UnauthorizedError("Invalid token.")


def authenticate(authorization: Optional[str], current: Optional[Settings] = None) -> AuthContext:
    """
    Resolve the caller.

    Raises:
        UnauthorizedError: no usable token and no dev fallback
    """
    current = current or default_settings
    token = extract_bearer_token(authorization)

    dev_user_id = None if current.is_production else current.chat.dev_user_id

    if token:
        try:
            payload = decode_jwt(token, current.data.supabase_jwt_secret)
            user_id = payload.get("sub")
            if not user_id:
                raise UnauthorizedError("Invalid token: no user_id.")
            return AuthContext(user_id=user_id, access_token=token)
        except UnauthorizedError:
            if not dev_user_id:
                raise

    if dev_user_id:
        logger.debug("[Auth] Using DEV_USER_ID fallback")
        return AuthContext(user_id=dev_user_id)

    raise UnauthorizedError()

