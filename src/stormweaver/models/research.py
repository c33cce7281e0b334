"""Research models: perspectives, questions and answers gathered before writing."""

from __future__ import annotations

from pydantic import BaseModel, Field

from stormweaver.models.article import Article
from stormweaver.models.outline import Outline


class Perspective(BaseModel):
    title: str = Field(description="The title of the perspective")
    description: str = Field(description="The description of the perspective")
    guidelines: str = Field(description="The guidelines of the perspective")


class Perspectives(BaseModel):
    perspectives: list[Perspective] = Field(default_factory=list)


class Question(BaseModel):
    objective: str = Field(description="The objective of the question")
    question: str = Field(description="The question")


class Questions(BaseModel):
    questions: list[Question] = Field(default_factory=list)


class Answer(BaseModel):
    evidence: str = Field(description="The evidence for the answer")
    answer: str = Field(description="The answer to the question")


class Answers(BaseModel):
    answers: list[Answer] = Field(default_factory=list)


class PerspectiveQuestions(BaseModel):
    """Questions asked from one perspective."""

    perspective: Perspective
    questions: list[Question] = Field(default_factory=list)


class QAPair(BaseModel):
    question: Question
    answer: Answer | None = None


class StormResult(BaseModel):
    """Everything produced by one run of the pipeline."""

    article: Article
    outline: Outline
    perspectives: list[Perspective] = Field(default_factory=list)
    questions: list[PerspectiveQuestions] = Field(default_factory=list)
    answers: list[list[Answer]] = Field(default_factory=list)
    qa_pairs: list[list[QAPair]] = Field(default_factory=list)
