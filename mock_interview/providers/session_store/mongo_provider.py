"""
MongoDB session store.

One document per finished session in the ``interview_sessions``
collection, keyed by (user_id, session_id).
"""
import logging
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from mock_interview.core.errors import RemoteError
from mock_interview.models.session import SessionRecord
from mock_interview.providers.session_store.base import SessionStore

logger = logging.getLogger(__name__)


class MongoSessionStore(SessionStore):
    """
    Store session records in MongoDB.

    Records are stored in their JSON form so a read returns exactly what
    was written; ``finished_at_ts`` is an extra epoch field used for sorting.
    """

    def __init__(self, collection):
        """
        Initialize the store.

        Args:
            collection: Motor collection (e.g. ``MongoDBClient.interview_sessions``)
        """
        self.collection = collection

    async def write(self, user_id: str, record: SessionRecord) -> None:
        document = record.to_document()
        document["user_id"] = user_id
        document["finished_at_ts"] = record.finished_at.timestamp()

        try:
            await self.collection.replace_one(
                {"user_id": user_id, "session_id": record.session_id},
                document,
                upsert=True,
            )
        except PyMongoError as e:
            logger.error(f"Failed to store session {record.session_id}: {e}")
            raise RemoteError(f"Document store write failed: {e}")

        logger.info(f"Stored session record {record.session_id} for user {user_id}")

    async def read(self, user_id: str, session_id: str) -> Optional[SessionRecord]:
        try:
            document = await self.collection.find_one(
                {"user_id": user_id, "session_id": session_id},
                projection={"_id": False},
            )
        except PyMongoError as e:
            raise RemoteError(f"Document store read failed: {e}")

        if document is None:
            return None
        return SessionRecord.from_document(document)

    async def list(self, user_id: str, limit: int = 20) -> List[SessionRecord]:
        try:
            cursor = (
                self.collection.find({"user_id": user_id}, projection={"_id": False})
                .sort("finished_at_ts", DESCENDING)
                .limit(limit)
            )
            documents = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise RemoteError(f"Document store query failed: {e}")

        return [SessionRecord.from_document(doc) for doc in documents]
