"""
Pydantic models for the question source.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Question(BaseModel):
    """A single interview question with its reference answer."""
    model_config = ConfigDict(frozen=True)

    text: str
    reference_answer: str = ""
    topic: str


class RawQuestion(BaseModel):
    """One entry of a topic document: ``{"question": ..., "answer": ...}``."""
    question: str = Field(..., min_length=1)
    answer: str = ""


class TopicInfo(BaseModel):
    """Summary of a topic available in the question bank."""
    name: str
    question_count: int


class TopicQuestionsResponse(BaseModel):
    """Response for browsing the questions of one topic."""
    topic: str
    questions: List[Question]
