"""
Quiz question schema and LLM output parsing.

Generated quiz text is untrusted input. It is parsed into a strict schema:

- GeneratedQuestion: a validated question from the model
- FallbackQuestion: the single generic question used when nothing could be
  parsed; always marked with kind="fallback"

Stored quiz data keeps the `kind` tag, so it loads back into the right
variant with QUIZ_QUESTIONS.validate_python(...).
"""

import json
import logging
import re
from typing import Annotated, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from notes_tutor.errors import QuizParseError

logger = logging.getLogger(__name__)

OPTION_COUNT = 4
_LETTERS = "ABCD"
_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
# "B", "b)", "(C)", "D. Paris"
_LETTER_ANSWER = re.compile(r"^\(?([A-Da-d])(?:[).:\s]|$)")


class _QuestionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    question_text: str = Field(
        min_length=1,
        validation_alias=AliasChoices("question_text", "question"),
    )
    options: list[str] = Field(min_length=OPTION_COUNT, max_length=OPTION_COUNT)
    correct_option_index: int = Field(
        ge=0,
        lt=OPTION_COUNT,
        validation_alias=AliasChoices("correct_option_index", "correct_answer", "answer"),
    )
    explanation: str
    subject: str | None = None
    topic: str | None = None
    subtopic: str | None = None

    @field_validator("options")
    @classmethod
    def _options_not_blank(cls, options: list[str]) -> list[str]:
        if any(not option for option in options):
            raise ValueError("options must not be blank")
        return options

    @field_validator("subject", "topic", "subtopic", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def public_dict(self, index: int) -> dict:
        """The question as shown before grading: no answer, no explanation."""
        return {
            "index": index,
            "question_text": self.question_text,
            "options": list(self.options),
            "is_generic": self.kind == "fallback",
        }


class GeneratedQuestion(_QuestionBase):
    kind: Literal["generated"] = "generated"

    @field_validator("correct_option_index", mode="before")
    @classmethod
    def _letter_to_index(cls, value):
        # Models often answer "B" or "B) ..." instead of 1
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.isdigit():
                return int(stripped)
            match = _LETTER_ANSWER.match(stripped)
            if match:
                return _LETTERS.index(match.group(1).upper())
        if isinstance(value, bool):
            raise ValueError("correct answer must be an index")
        return value

    @model_validator(mode="after")
    def _distinct_options(self):
        if len({option.lower() for option in self.options}) != OPTION_COUNT:
            raise ValueError("options must be distinct")
        return self


class FallbackQuestion(_QuestionBase):
    kind: Literal["fallback"] = "fallback"


QuizQuestion = Annotated[Union[GeneratedQuestion, FallbackQuestion], Field(discriminator="kind")]
QUIZ_QUESTIONS = TypeAdapter(list[QuizQuestion])


def fallback_question() -> FallbackQuestion:
    """The deterministic generic question used when generation output is unusable."""
    return FallbackQuestion(
        question_text="Based on the uploaded content, which concept is most important?",
        options=["Concept A", "Concept B", "Concept C", "All of the above"],
        correct_option_index=3,
        explanation=(
            "All concepts in the material are interconnected and important "
            "for understanding."
        ),
    )


def _extract_json(raw: str):
    """Find the JSON payload in a model reply (fences and chatter allowed)."""
    text = _FENCE.sub("", raw).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        raise QuizParseError("No JSON array found in quiz output")
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise QuizParseError(f"Quiz output is not valid JSON: {exc.msg}") from exc


def parse_quiz_questions(raw: str, limit: int) -> list[GeneratedQuestion]:
    """
    Parse a model reply into at most `limit` validated questions.

    Invalid items are dropped one by one; the reply only fails as a whole
    when not a single valid question is left.

    Raises:
        QuizParseError: If no valid question could be parsed
    """
    payload = _extract_json(raw)
    if isinstance(payload, dict):
        payload = payload.get("questions")
    if not isinstance(payload, list):
        raise QuizParseError("Quiz output is not a list of questions")

    questions: list[GeneratedQuestion] = []
    for position, item in enumerate(payload):
        try:
            questions.append(GeneratedQuestion.model_validate(item))
        except ValidationError as exc:
            logger.debug("Dropping quiz item %d: %s", position, exc)
        if len(questions) == limit:
            break

    if not questions:
        raise QuizParseError("Quiz output contained no valid questions")
    return questions
