"""
Topic API endpoints.

Study browser over the question source.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from mock_interview.api.deps import get_question_bank
from mock_interview.core.auth import get_current_user
from mock_interview.models.auth import CurrentUser
from mock_interview.models.question import TopicInfo, TopicQuestionsResponse
from mock_interview.services.question_bank import QuestionBankService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/topics", tags=["topics"])


@router.get("", response_model=List[TopicInfo])
async def list_topics(
    question_bank: QuestionBankService = Depends(get_question_bank),
    user: CurrentUser = Depends(get_current_user),
):
    """List the available topics and their question counts."""
    return await question_bank.get_topic_info()


@router.get("/{topic}/questions", response_model=TopicQuestionsResponse)
async def get_topic_questions(
    topic: str,
    question_bank: QuestionBankService = Depends(get_question_bank),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Get every question of a topic, with reference answers, in file order.
    """
    questions = await question_bank.load_topic(topic)
    return TopicQuestionsResponse(topic=topic, questions=questions)
