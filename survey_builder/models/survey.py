"""Pydantic models for stored survey records.

Field names on the wire follow the stored JSON layout (``submittedAt``,
``isSurveyOpen``); Python attributes use snake_case with aliases. Always dump
with ``by_alias=True`` (``to_wire()`` does this).
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class QuestionType:
    SINGLE_CHOICE = "single-choice"
    MULTIPLE_CHOICE = "multiple-choice"
    LIKERT_5 = "likert-5"
    TEXT = "text"
    BINARY = "binary"

    ALL = (SINGLE_CHOICE, MULTIPLE_CHOICE, LIKERT_5, TEXT, BINARY)


QuestionTypeName = Literal["single-choice", "multiple-choice", "likert-5", "text", "binary"]

# Ordered from strongest disagreement to strongest agreement; position + 1 is
# the numeric score used in exports.
LIKERT_5_SCALE: tuple[str, ...] = (
    "لا أوافق بشدة",
    "لا أوافق",
    "محايد",
    "أوافق",
    "أوافق بشدة",
)

BINARY_DEFAULT_OPTIONS: tuple[str, ...] = ("نعم", "لا")


def answer_key(question_id: int) -> str:
    return f"q-{question_id}"


class Question(BaseModel):
    id: int
    text: str
    type: QuestionTypeName
    options: List[str] = Field(default_factory=list)


class Survey(BaseModel):
    title: str
    questions: List[Question]

    def question_ids(self) -> list[int]:
        return [q.id for q in self.questions]


class SingleAnswer(BaseModel):
    kind: Literal["single"] = "single"
    value: str

    def to_wire(self) -> str:
        return self.value

    def selected(self) -> list[str]:
        return [self.value]

    def is_blank(self) -> bool:
        return not self.value


class MultipleAnswer(BaseModel):
    kind: Literal["multiple"] = "multiple"
    values: List[str]

    def to_wire(self) -> list[str]:
        return list(self.values)

    def selected(self) -> list[str]:
        return list(self.values)

    def is_blank(self) -> bool:
        return len(self.values) == 0


Answer = Annotated[Union[SingleAnswer, MultipleAnswer], Field(discriminator="kind")]


def tag_answer(raw: object) -> dict:
    """Turn a wire answer (``str`` or ``list[str]``) into its tagged form.

    Already-tagged dicts and answer models pass through unchanged.
    """
    if isinstance(raw, (SingleAnswer, MultipleAnswer)):
        return raw.model_dump()
    if isinstance(raw, str):
        return {"kind": "single", "value": raw}
    if isinstance(raw, (list, tuple)):
        if not all(isinstance(v, str) for v in raw):
            raise ValueError("multiple-choice answers must be a list of strings")
        return {"kind": "multiple", "values": list(raw)}
    if isinstance(raw, dict) and raw.get("kind") in {"single", "multiple"}:
        return raw
    raise ValueError("answer must be a string or a list of strings")


class SurveyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    submitted_at: int = Field(alias="submittedAt")
    answers: Dict[str, Answer] = Field(default_factory=dict)

    @field_validator("answers", mode="before")
    @classmethod
    def _tag_answers(cls, value: object) -> object:
        if not isinstance(value, dict):
            raise ValueError("answers must be an object keyed by question")
        return {str(k): tag_answer(v) for k, v in value.items()}

    @field_serializer("answers")
    def _wire_answers(self, answers: Dict[str, Union[SingleAnswer, MultipleAnswer]]) -> dict:
        return {k: a.to_wire() for k, a in answers.items()}

    def answer_for(self, question_id: int) -> Optional[Union[SingleAnswer, MultipleAnswer]]:
        return self.answers.get(answer_key(question_id))


class CreatorData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    survey: Optional[Survey] = None
    responses: List[SurveyResponse] = Field(default_factory=list)
    is_survey_open: bool = Field(default=True, alias="isSurveyOpen")

    @classmethod
    def initial(cls) -> "CreatorData":
        return cls(survey=None, responses=[], is_survey_open=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def public_view(self) -> "PublicSurvey":
        if self.survey is None:
            raise ValueError("no survey to publish")
        return PublicSurvey(survey=self.survey, is_survey_open=self.is_survey_open)


class PublicSurvey(BaseModel):
    """What respondents may see: never the collected responses."""

    model_config = ConfigDict(populate_by_name=True)

    survey: Survey
    is_survey_open: bool = Field(alias="isSurveyOpen")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Credential(BaseModel):
    username: str
    # Encoded hash (see logic.credentials); legacy records may hold plaintext.
    password: str


__all__ = [
    "QuestionType",
    "QuestionTypeName",
    "LIKERT_5_SCALE",
    "BINARY_DEFAULT_OPTIONS",
    "answer_key",
    "Question",
    "Survey",
    "SingleAnswer",
    "MultipleAnswer",
    "Answer",
    "tag_answer",
    "SurveyResponse",
    "CreatorData",
    "PublicSurvey",
    "Credential",
]
