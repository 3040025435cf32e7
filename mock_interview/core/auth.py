"""
Core authentication module for the Mock Interview service.

Login, redirects and token refresh are handled by the identity provider.
This module only validates the bearer tokens it issues:

    - AUTH_DOMAIN set: RS256 tokens verified against the provider's JWKS
    - otherwise: tokens signed with the shared JWT_SECRET_KEY

When AUTH_ENABLED is false every request runs as a development user.
"""
import logging
import time
from datetime import timedelta
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mock_interview.core.config import get_settings
from mock_interview.models.auth import AuthConfig, CurrentUser, TokenPayload

logger = logging.getLogger(__name__)

DEV_USER = CurrentUser(
    user_id="dev-user",
    name="Development User",
    email="dev@localhost",
    token_exp=9999999999,
    token_iss="dev-mode",
)

# Security scheme for Swagger UI
security_scheme = HTTPBearer(
    scheme_name="JWT",
    description="Access token from the identity provider. Format: Bearer <token>",
    auto_error=False,  # Don't auto-raise, we handle it for better error messages
)


def get_auth_config() -> AuthConfig:
    """Load auth configuration from settings."""
    settings = get_settings()

    if settings.auth_domain:
        return AuthConfig(
            secret_key="",
            algorithm="RS256",
            jwks_url=settings.auth_jwks_url,
            verify_aud=bool(settings.auth_audience),
            expected_audience=settings.auth_audience,
            expected_issuer=f"https://{settings.auth_domain.rstrip('/')}/",
        )

    return AuthConfig(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        verify_aud=bool(settings.auth_audience),
        expected_audience=settings.auth_audience,
    )


@lru_cache()
def _get_jwks_client(jwks_url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(jwks_url)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str, config: Optional[AuthConfig] = None) -> TokenPayload:
    """
    Decode and validate an access token.

    Raises:
        HTTPException: If token is invalid, expired, or malformed
    """
    if config is None:
        config = get_auth_config()

    decode_kwargs = {
        "algorithms": [config.algorithm],
        "options": {
            "verify_exp": config.verify_exp,
            "verify_aud": config.verify_aud,
            "require": ["sub", "exp"],
        },
        "leeway": timedelta(seconds=config.leeway),
    }
    if config.verify_aud and config.expected_audience:
        decode_kwargs["audience"] = config.expected_audience
    if config.expected_issuer:
        decode_kwargs["issuer"] = config.expected_issuer

    try:
        if config.jwks_url:
            key = _get_jwks_client(config.jwks_url).get_signing_key_from_jwt(token).key
        else:
            key = config.secret_key

        payload = jwt.decode(token, key, **decode_kwargs)
        return TokenPayload(**payload)

    except jwt.ExpiredSignatureError:
        logger.warning("Token expired")
        raise _unauthorized("Token has expired")
    except jwt.InvalidIssuerError:
        logger.warning("Invalid token issuer")
        raise _unauthorized("Invalid token issuer")
    except jwt.InvalidAudienceError:
        logger.warning("Invalid token audience")
        raise _unauthorized("Invalid token audience")
    except jwt.PyJWKClientError as e:
        logger.warning(f"Signing key lookup failed: {e}")
        raise _unauthorized("Unable to verify token signature")
    except jwt.DecodeError as e:
        logger.warning(f"Token decode error: {e}")
        raise _unauthorized("Invalid token format")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise _unauthorized("Invalid token")


def create_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict] = None,
) -> str:
    """
    Create an HS-signed token with the shared secret.

    Provided for development and tests; in production the identity
    provider issues tokens.
    """
    config = get_auth_config()
    if expires_delta is None:
        expires_delta = timedelta(hours=1)

    now_ts = int(time.time())
    payload = {
        "sub": subject,
        "iat": now_ts,
        "exp": now_ts + int(expires_delta.total_seconds()),
    }
    if config.expected_audience:
        payload["aud"] = config.expected_audience
    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(payload, config.secret_key, algorithm=config.algorithm)


def authenticate_token(token: Optional[str]) -> CurrentUser:
    """
    Resolve the user a token belongs to.

    Shared by the HTTP dependency and the WebSocket handshake.
    """
    settings = get_settings()

    # If auth is disabled, every caller is the development user
    if not settings.auth_enabled:
        return DEV_USER

    if not token:
        raise _unauthorized("Not authenticated")

    token_payload = decode_token(token)
    return CurrentUser(
        user_id=token_payload.sub,
        name=token_payload.name,
        email=token_payload.email,
        token_exp=token_payload.exp,
        token_iss=token_payload.iss,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> CurrentUser:
    """
    FastAPI dependency to get the current authenticated user.

    Usage in route handlers:
        @router.get("/protected")
        async def protected_route(user: CurrentUser = Depends(get_current_user)):
            return {"user_id": user.user_id}
    """
    return authenticate_token(credentials.credentials if credentials else None)
