import logging
from typing import Optional

from app.core.config import Settings, get_settings
from app.core.exceptions import ExtractionFailed, InputTooLarge, OracleEmptyResponse, ValidationError
from app.schemas.question import Question, ReadingComprehensionQuestion
from app.services.oracle import ExtractionOracle, get_oracle
from app.services.prompts import SINGLE_QUESTION_INSTRUCTIONS
from app.services.schema_registry import Shape, describe, validate

logger = logging.getLogger(__name__)


def normalize_whitespace(text: str) -> str:
    return " ".join(text.split())


def check_input_size(raw_text: str, settings: Settings) -> None:
    if not raw_text or not raw_text.strip():
        raise ExtractionFailed("empty input")
    if len(raw_text) > settings.max_input_chars:
        raise InputTooLarge("max_input_chars", settings.max_input_chars, len(raw_text))


class QuestionParser:
    """Turns one pasted MCQ or passage into exactly one validated Question."""

    def __init__(self, oracle: ExtractionOracle, settings: Optional[Settings] = None) -> None:
        self.oracle = oracle
        self.settings = settings or get_settings()

    def parse(self, raw_text: str) -> Question:
        check_input_size(raw_text, self.settings)

        try:
            output = self.oracle.invoke(SINGLE_QUESTION_INSTRUCTIONS, describe(Shape.SINGLE_QUESTION), raw_text)
        except OracleEmptyResponse as exc:
            raise ExtractionFailed("empty model output", cause=exc) from exc
        if not output:
            raise ExtractionFailed("empty model output")

        try:
            question = validate(output, Shape.SINGLE_QUESTION)
        except ValidationError as exc:
            logger.warning("Single question rejected: %d violation(s)", len(exc.violations))
            raise ExtractionFailed("model output failed validation", cause=exc) from exc

        if isinstance(question, ReadingComprehensionQuestion):
            if normalize_whitespace(question.passage) != normalize_whitespace(raw_text):
                raise ExtractionFailed("passage was not copied verbatim from the input")
            logger.info(
                "Parsed reading comprehension passage (%d chars, %d sub-questions)",
                len(raw_text),
                len(question.sub_questions),
            )
        else:
            logger.info("Parsed standard question with %d options", len(question.options))
        return question


def parse_single_question(raw_text: str, oracle: Optional[ExtractionOracle] = None) -> Question:
    return QuestionParser(oracle or get_oracle()).parse(raw_text)
