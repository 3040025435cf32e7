"""
Authentication models for the Mock Interview service.

Login, redirects and token refresh belong to the identity provider; this
service only validates the bearer tokens it issues.
"""
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """
    Claims expected in an identity-provider access token.

    Required claims:
        - sub: Subject (user ID)
        - exp: Expiration timestamp
    """
    sub: str = Field(..., description="Subject - user ID")
    exp: int = Field(..., description="Expiration timestamp (Unix epoch)")

    iat: Optional[int] = None
    iss: Optional[str] = None
    aud: Optional[Union[str, List[str]]] = None

    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow().timestamp() > self.exp


class CurrentUser(BaseModel):
    """The authenticated user a request acts on behalf of."""
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    token_exp: Optional[int] = None
    token_iss: Optional[str] = None


class AuthConfig(BaseModel):
    """Token verification settings."""
    secret_key: str
    algorithm: str = "HS256"
    jwks_url: Optional[str] = None
    verify_exp: bool = True
    verify_aud: bool = False
    expected_audience: Optional[str] = None
    expected_issuer: Optional[str] = None
    leeway: int = 30
