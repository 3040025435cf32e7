"""
Local filesystem session store.

Stores records as ``{base_path}/{user_id}/{session_id}.json``.
Suitable for development, testing, and single-server deployments.
"""
import json
import logging
import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from mock_interview.models.session import SessionRecord
from mock_interview.providers.session_store.base import SessionStore

logger = logging.getLogger(__name__)


def _safe_name(value: str) -> str:
    """Percent-encode an id into a single path component; distinct ids stay distinct."""
    return quote(value, safe="-_@").replace(".", "%2E") or "%"


class LocalSessionStore(SessionStore):
    """
    Store session records as JSON documents in the local filesystem.

    Default location: ./data/sessions/
    """

    def __init__(self, base_path: str = "data/sessions"):
        """
        Initialize local session store.

        Args:
            base_path: Base directory, relative to the working directory.
        """
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Session store directory: {self.base_path.absolute()}")

    def _user_dir(self, user_id: str) -> Path:
        return self.base_path / _safe_name(user_id)

    def _record_path(self, user_id: str, session_id: str) -> Path:
        return self._user_dir(user_id) / f"{_safe_name(session_id)}.json"

    async def write(self, user_id: str, record: SessionRecord) -> None:
        path = self._record_path(user_id, record.session_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temp file first so readers never see a partial document
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(record.to_document(), f, indent=2)
        os.replace(tmp_path, path)

        logger.info(f"Stored session record: {path}")

    def _load(self, path: Path) -> Optional[SessionRecord]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return SessionRecord.from_document(json.load(f))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(f"Skipping unreadable session record {path}: {e}")
            return None

    async def read(self, user_id: str, session_id: str) -> Optional[SessionRecord]:
        path = self._record_path(user_id, session_id)
        if not path.exists():
            logger.debug(f"Session record not found: {path}")
            return None
        return self._load(path)

    async def list(self, user_id: str, limit: int = 20) -> List[SessionRecord]:
        user_dir = self._user_dir(user_id)
        if not user_dir.exists():
            return []

        records = []
        for path in user_dir.glob("*.json"):
            record = self._load(path)
            if record is not None:
                records.append(record)

        records.sort(key=lambda r: r.finished_at, reverse=True)
        return records[:limit]

    async def health_check(self) -> bool:
        return self.base_path.exists()
