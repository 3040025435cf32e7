"""
Question Bank Service.

Provides lazy-loading and parsing of the per-topic question documents.
Each topic is one JSON file holding an array of ``{question, answer}``.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from mock_interview.core.errors import ParseError, TopicNotFoundError
from mock_interview.models.question import Question, RawQuestion, TopicInfo

logger = logging.getLogger(__name__)

# Default path to the bundled question bank
DEFAULT_QUESTION_BANK_PATH = Path(__file__).parent.parent / "data" / "questions"


class QuestionBankService:
    """
    Service for loading the per-topic question documents.

    Features:
    - Lazy loading of topics on demand
    - In-memory caching of loaded topics
    - Missing topics reported as lookup failures, malformed files as parse failures
    """

    def __init__(self, bank_path: Optional[Path] = None):
        """
        Initialize the question bank service.

        Args:
            bank_path: Directory holding ``<topic>.json`` files.
                       Defaults to the bundled data/questions/.
        """
        self.bank_path = Path(bank_path) if bank_path else DEFAULT_QUESTION_BANK_PATH

        # Cache of loaded topics: topic name -> questions in document order
        self._loaded_topics: Dict[str, List[Question]] = {}

        self._available_topics: Optional[List[str]] = None

    def list_available_topics(self) -> List[str]:
        """List all available topics (JSON files in the bank directory)."""
        if self._available_topics is not None:
            return self._available_topics

        if not self.bank_path.exists():
            logger.warning(f"Question bank path does not exist: {self.bank_path}")
            return []

        topics = sorted(file_path.stem for file_path in self.bank_path.glob("*.json"))

        self._available_topics = topics
        logger.info(f"Found {len(topics)} available topics: {topics}")
        return self._available_topics

    def _topic_path(self, topic: str) -> Path:
        # Topic names map straight to file stems; reject anything path-like
        safe_topic = "".join(c for c in topic if c.isalnum() or c in "-_")
        return self.bank_path / f"{safe_topic}.json"

    def _read_topic_sync(self, topic: str) -> List[Question]:
        """Read and parse a topic document (blocking)."""
        path = self._topic_path(topic)
        if not topic or not path.exists():
            raise TopicNotFoundError(topic)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError(f"Malformed question document for topic {topic}: {e}")

        if not isinstance(data, list):
            raise ParseError(f"Question document for topic {topic} is not an array")

        questions = []
        for index, entry in enumerate(data):
            try:
                raw = RawQuestion.model_validate(entry)
            except PydanticValidationError as e:
                raise ParseError(f"Invalid entry {index} in topic {topic}: {e.errors()[0]['msg']}")
            questions.append(Question(text=raw.question, reference_answer=raw.answer, topic=topic))

        return questions

    async def load_topic(self, topic: str) -> List[Question]:
        """
        Load the questions of one topic, in document order.

        Raises:
            TopicNotFoundError: No document exists for the topic
            ParseError: The document is not a valid question array
        """
        if topic in self._loaded_topics:
            return list(self._loaded_topics[topic])

        loop = asyncio.get_running_loop()
        questions = await loop.run_in_executor(None, self._read_topic_sync, topic)

        self._loaded_topics[topic] = questions
        logger.info(f"Loaded topic '{topic}': {len(questions)} questions")
        return list(questions)

    async def load_topics(self, topics: List[str]) -> Dict[str, List[Question]]:
        """Load several topics, preserving the order they were requested in."""
        pools: Dict[str, List[Question]] = {}
        for topic in topics:
            if topic not in pools:
                pools[topic] = await self.load_topic(topic)
        return pools

    async def get_topic_info(self) -> List[TopicInfo]:
        """Summaries of every available topic."""
        infos = []
        for topic in self.list_available_topics():
            try:
                questions = await self.load_topic(topic)
            except ParseError as e:
                logger.warning(f"Skipping unreadable topic {topic}: {e}")
                continue
            infos.append(TopicInfo(name=topic, question_count=len(questions)))
        return infos

    def clear_cache(self):
        """Drop cached topics so the next load re-reads the files."""
        self._loaded_topics.clear()
        self._available_topics = None
