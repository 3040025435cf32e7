"""
pytest configuration and shared fixtures.
"""
import json
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Disable auth for API tests by default
os.environ["AUTH_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"

from mock_interview.core.config import Settings
from mock_interview.models.session import EvaluationResult
from mock_interview.services.question_bank import QuestionBankService


JAVA_QUESTIONS = [
    {"question": f"Java question {i}", "answer": f"Java answer {i}"}
    for i in range(1, 6)
]

SYSTEM_DESIGN_QUESTIONS = [
    {"question": f"System design question {i}", "answer": f"System design answer {i}"}
    for i in range(1, 4)
]


@pytest.fixture
def question_bank_dir(tmp_path):
    """A question bank with a 5-question 'java' and 3-question 'SystemDesign' topic."""
    bank = tmp_path / "questions"
    bank.mkdir()
    (bank / "java.json").write_text(json.dumps(JAVA_QUESTIONS), encoding="utf-8")
    (bank / "SystemDesign.json").write_text(json.dumps(SYSTEM_DESIGN_QUESTIONS), encoding="utf-8")
    return bank


@pytest.fixture
def question_bank(question_bank_dir):
    return QuestionBankService(question_bank_dir)


@pytest.fixture
def settings(tmp_path, question_bank_dir):
    """Settings isolated to a temp directory."""
    return Settings(
        _env_file=None,
        auth_enabled=False,
        session_store_path=str(tmp_path / "sessions"),
        recording_storage_path=str(tmp_path / "recordings"),
        question_bank_path=str(question_bank_dir),
        silence_timeout_seconds=0.05,
    )


@pytest.fixture
def evaluation_result():
    return EvaluationResult(
        overall_score=82,
        feedback="Solid fundamentals.",
        strengths=["Clear explanations"],
        weaknesses=["Few examples"],
    )


@pytest.fixture
def grading_client(evaluation_result):
    """Mock grading client: echoes feedback per answer, fixed evaluation."""
    client = MagicMock()

    async def mock_ask_question(question_text, answer_text):
        return f"Feedback on: {answer_text}"

    client.ask_question = AsyncMock(side_effect=mock_ask_question)
    client.evaluate = AsyncMock(return_value=evaluation_result)
    client.close = AsyncMock()
    return client


@pytest.fixture
def grading_factory(grading_client):
    """Factory callable returning the mock grading client."""
    return MagicMock(return_value=grading_client)


@pytest.fixture
def session_store():
    store = MagicMock()
    store.write = AsyncMock()
    store.read = AsyncMock(return_value=None)
    store.list = AsyncMock(return_value=[])
    return store
