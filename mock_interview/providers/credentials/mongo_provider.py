"""
MongoDB credential store.

One document per user in the ``grading_credentials`` collection.
"""
import logging
from typing import Optional, Union

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from mock_interview.core.errors import RemoteError
from mock_interview.providers.credentials.base import CredentialStore
from mock_interview.providers.grading.base import GradingCredentials, GradingProvider

logger = logging.getLogger(__name__)


def _to_credentials(document: Optional[dict]) -> GradingCredentials:
    if not document:
        return GradingCredentials()
    return GradingCredentials(
        openai_api_key=document.get("openai_api_key"),
        perplexity_api_key=document.get("perplexity_api_key"),
    )


class MongoCredentialStore(CredentialStore):
    """Store grading credentials in MongoDB."""

    def __init__(self, collection):
        self.collection = collection

    async def get_credentials(self, user_id: str) -> GradingCredentials:
        try:
            document = await self.collection.find_one({"user_id": user_id})
        except PyMongoError as e:
            raise RemoteError(f"Credential lookup failed: {e}")
        return _to_credentials(document)

    async def set_key(
        self,
        user_id: str,
        provider: Union[str, GradingProvider],
        api_key: Optional[str],
    ) -> GradingCredentials:
        field = self._field_for(provider)
        if api_key:
            update = {"$set": {field: api_key}}
        else:
            update = {"$unset": {field: ""}}

        try:
            document = await self.collection.find_one_and_update(
                {"user_id": user_id},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise RemoteError(f"Credential update failed: {e}")

        logger.info(f"Updated {field} for user {user_id}")
        return _to_credentials(document)

    async def clear(self, user_id: str) -> None:
        try:
            await self.collection.delete_one({"user_id": user_id})
        except PyMongoError as e:
            raise RemoteError(f"Credential delete failed: {e}")
        logger.info(f"Cleared grading credentials for user {user_id}")
