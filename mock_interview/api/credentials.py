"""
Grading credential endpoints.

Keys are write-only: reads only report which providers are configured.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from mock_interview.api.deps import get_credential_store
from mock_interview.core.auth import get_current_user
from mock_interview.models.auth import CurrentUser
from mock_interview.providers.credentials.base import CredentialStore
from mock_interview.providers.grading.base import GradingCredentials, GradingProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/credentials", tags=["credentials"])


class CredentialsUpdate(BaseModel):
    """Keys to store; an explicit null or empty string removes a key."""
    openai_api_key: Optional[str] = None
    perplexity_api_key: Optional[str] = None


class CredentialStatus(BaseModel):
    """Which grading providers have a key configured."""
    configured_providers: List[GradingProvider]
    has_any: bool


def _status(credentials: GradingCredentials) -> CredentialStatus:
    configured = credentials.configured_providers
    return CredentialStatus(configured_providers=configured, has_any=bool(configured))


@router.put("", response_model=CredentialStatus)
async def update_credentials(
    update: CredentialsUpdate,
    store: CredentialStore = Depends(get_credential_store),
    user: CurrentUser = Depends(get_current_user),
):
    """Store grading keys. Fields left out of the body are unchanged."""
    credentials = await store.get_credentials(user.user_id)
    for provider in GradingProvider:
        field = f"{provider.value}_api_key"
        if field in update.model_fields_set:
            credentials = await store.set_key(user.user_id, provider, getattr(update, field))
    return _status(credentials)


@router.get("", response_model=CredentialStatus)
async def get_credentials(
    store: CredentialStore = Depends(get_credential_store),
    user: CurrentUser = Depends(get_current_user),
):
    return _status(await store.get_credentials(user.user_id))


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_credentials(
    store: CredentialStore = Depends(get_credential_store),
    user: CurrentUser = Depends(get_current_user),
):
    await store.clear(user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
