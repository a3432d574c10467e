"""
Shapes an extraction result must conform to, and the validator for them.

Oracle output is untrusted: fields may be missing, mistyped or extra. Checks
are written out field by field so that every violation is reported with its
location, and the typed record is only built once nothing is wrong.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from app.core.exceptions import FieldViolation, ValidationError
from app.schemas.question import (
    DEFAULT_MARKS,
    BulkQuestionRecord,
    Difficulty,
    OptionSchema,
    OracleBulkQuestionList,
    OracleSingleQuestion,
    Question,
    ReadingComprehensionQuestion,
    StandardQuestion,
    SubQuestion,
)

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2
GENERATED_SUB_QUESTIONS_MIN = 3
GENERATED_SUB_QUESTIONS_MAX = 5
GENERATED_SUB_QUESTION_OPTIONS = 4

STANDARD_FIELDS = ("questionText", "options", "correctOptionIndex")
READING_FIELDS = ("passage", "subQuestions")


class Shape(str, Enum):
    SINGLE_QUESTION = "SingleQuestion"
    BULK_QUESTION_LIST = "BulkQuestionList"


@dataclass(frozen=True)
class SchemaDescriptor:
    """What the oracle is told to return; the registry validates against the same shape."""

    shape: Shape
    name: str
    json_schema: Dict[str, Any] = field(hash=False, compare=False)


_ORACLE_MODELS: Dict[Shape, Type[BaseModel]] = {
    Shape.SINGLE_QUESTION: OracleSingleQuestion,
    Shape.BULK_QUESTION_LIST: OracleBulkQuestionList,
}


@lru_cache()
def describe(shape: Shape) -> SchemaDescriptor:
    model = _ORACLE_MODELS[shape]
    return SchemaDescriptor(shape=shape, name=shape.value, json_schema=model.model_json_schema(by_alias=True))


class _Violations:
    def __init__(self) -> None:
        self.items: List[FieldViolation] = []

    def add(self, path: str, message: str) -> None:
        self.items.append(FieldViolation(path=path or "$", message=message))

    def __bool__(self) -> bool:
        return bool(self.items)

    def __len__(self) -> int:
        return len(self.items)


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list)) and not value:
        return False
    return True


def _check_text(value: Any, path: str, errors: _Violations, required: bool = False) -> Optional[str]:
    if value is None:
        if required:
            errors.add(path, "required")
        return None
    if not isinstance(value, str):
        errors.add(path, f"expected string, got {type(value).__name__}")
        return None
    value = value.strip()
    if not value:
        if required:
            errors.add(path, "must not be empty")
        return None
    return value


def _check_options(
    value: Any,
    path: str,
    errors: _Violations,
    exact_count: Optional[int] = None,
) -> List[Dict[str, str]]:
    if value is None:
        errors.add(path, "required")
        return []
    if not isinstance(value, list):
        errors.add(path, f"expected array, got {type(value).__name__}")
        return []
    if len(value) < MIN_OPTIONS:
        errors.add(path, f"too few options (got {len(value)}, need at least {MIN_OPTIONS})")
    elif exact_count is not None and len(value) != exact_count:
        errors.add(path, f"expected exactly {exact_count} options, got {len(value)}")

    options: List[Dict[str, str]] = []
    for idx, item in enumerate(value):
        item_path = f"{path}[{idx}]"
        # Models sometimes flatten options to plain strings.
        if isinstance(item, str):
            text: Any = item
        elif isinstance(item, Mapping):
            text = item.get("text")
            item_path = _join(item_path, "text")
        else:
            errors.add(item_path, "expected object with a 'text' field")
            continue
        if not isinstance(text, str) or not text.strip():
            errors.add(item_path, "option text must be a non-empty string")
            continue
        options.append({"text": text.strip()})
    return options


def _check_index(value: Any, path: str, errors: _Violations, option_count: Optional[int]) -> Optional[int]:
    if value is None:
        errors.add(path, "required: no correct-answer index")
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if isinstance(value, float):
        if not value.is_integer():
            errors.add(path, f"expected integer, got {value}")
            return None
        value = int(value)
    if value < 0 or (option_count is not None and value >= option_count):
        bound = f"[0, {option_count})" if option_count is not None else ">= 0"
        errors.add(path, f"index out of bounds ({value} not in {bound})")
        return None
    return value


def _check_marks(value: Any, path: str, errors: _Violations) -> Optional[float]:
    if value is None:
        return DEFAULT_MARKS
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            errors.add(path, f"expected number, got {value!r}")
            return None
    elif isinstance(value, bool) or not isinstance(value, (int, float)):
        errors.add(path, f"expected number, got {type(value).__name__}")
        return None
    if (isinstance(value, float) and not math.isfinite(value)) or value <= 0:
        errors.add(path, f"marks must be a finite positive number, got {value}")
        return None
    return value


def _check_difficulty(value: Any, path: str, errors: _Violations) -> Optional[Difficulty]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        errors.add(path, f"expected string, got {type(value).__name__}")
        return None
    try:
        return Difficulty(value.strip().lower())
    except ValueError:
        allowed = ", ".join(level.value for level in Difficulty)
        errors.add(path, f"must be one of {allowed} (got {value!r})")
        return None


def _check_body(
    data: Mapping,
    path: str,
    errors: _Violations,
    exact_options: Optional[int] = None,
) -> Dict[str, Any]:
    """Fields shared by standard questions, sub-questions and bulk records."""

    raw_options = data.get("options")
    option_count = len(raw_options) if isinstance(raw_options, list) else None
    return {
        "question_text": _check_text(data.get("questionText"), _join(path, "questionText"), errors, required=True),
        "options": _check_options(raw_options, _join(path, "options"), errors, exact_count=exact_options),
        "correct_option_index": _check_index(
            data.get("correctOptionIndex"), _join(path, "correctOptionIndex"), errors, option_count
        ),
        "explanation": _check_text(data.get("explanation"), _join(path, "explanation"), errors),
        "marks": _check_marks(data.get("marks"), _join(path, "marks"), errors),
    }


def _check_classification(data: Mapping, path: str, errors: _Violations) -> Dict[str, Any]:
    return {
        "subject": _check_text(data.get("subject"), _join(path, "subject"), errors),
        "topic": _check_text(data.get("topic"), _join(path, "topic"), errors),
        "difficulty": _check_difficulty(data.get("difficulty"), _join(path, "difficulty"), errors),
    }


def _options(values: List[Dict[str, str]]) -> List[OptionSchema]:
    return [OptionSchema(**value) for value in values]


def _validate_standard(data: Mapping, errors: _Violations) -> Optional[StandardQuestion]:
    body = _check_body(data, "", errors)
    meta = _check_classification(data, "", errors)
    if errors:
        return None
    return StandardQuestion(
        question_text=body["question_text"],
        options=_options(body["options"]),
        correct_option_index=body["correct_option_index"],
        explanation=body["explanation"],
        marks=body["marks"],
        **meta,
    )


def _validate_reading(data: Mapping, errors: _Violations, generated: bool) -> Optional[ReadingComprehensionQuestion]:
    passage = _check_text(data.get("passage"), "passage", errors, required=True)
    meta = _check_classification(data, "", errors)
    explanation = _check_text(data.get("explanation"), "explanation", errors)

    raw_subs = data.get("subQuestions")
    sub_bodies: List[Dict[str, Any]] = []
    if raw_subs is None:
        errors.add("subQuestions", "required")
    elif not isinstance(raw_subs, list):
        errors.add("subQuestions", f"expected array, got {type(raw_subs).__name__}")
    else:
        low, high = (GENERATED_SUB_QUESTIONS_MIN, GENERATED_SUB_QUESTIONS_MAX) if generated else (1, None)
        if len(raw_subs) < low or (high is not None and len(raw_subs) > high):
            expected = f"{low}-{high}" if high is not None else f"at least {low}"
            errors.add("subQuestions", f"expected {expected} sub-questions, got {len(raw_subs)}")
        exact = GENERATED_SUB_QUESTION_OPTIONS if generated else None
        for idx, item in enumerate(raw_subs):
            item_path = f"subQuestions[{idx}]"
            if not isinstance(item, Mapping):
                errors.add(item_path, "expected object")
                continue
            sub_bodies.append(_check_body(item, item_path, errors, exact_options=exact))

    if errors:
        return None
    return ReadingComprehensionQuestion(
        passage=passage,
        sub_questions=[
            SubQuestion(
                question_text=body["question_text"],
                options=_options(body["options"]),
                correct_option_index=body["correct_option_index"],
                explanation=body["explanation"],
                marks=body["marks"],
            )
            for body in sub_bodies
        ],
        explanation=explanation,
        **meta,
    )


def _validate_single(candidate: Any, errors: _Violations, generated: bool) -> Optional[Question]:
    if not isinstance(candidate, Mapping):
        errors.add("$", f"expected object, got {type(candidate).__name__}")
        return None

    is_standard = any(_present(candidate.get(key)) for key in STANDARD_FIELDS)
    is_reading = any(_present(candidate.get(key)) for key in READING_FIELDS)
    if is_standard and is_reading:
        errors.add("$", "ambiguous/unclassifiable question type: both question/options and passage fields present")
        return None
    if not is_standard and not is_reading:
        errors.add("$", "ambiguous/unclassifiable question type: neither question/options nor passage present")
        return None

    if is_standard:
        return _validate_standard(candidate, errors)
    return _validate_reading(candidate, errors, generated)


def _validate_bulk(candidate: Any, errors: _Violations) -> List[BulkQuestionRecord]:
    if not isinstance(candidate, Mapping):
        errors.add("$", f"expected object with a 'questions' array, got {type(candidate).__name__}")
        return []
    questions = candidate.get("questions")
    if questions is None:
        errors.add("questions", "required: records must be wrapped in a 'questions' array")
        return []
    if not isinstance(questions, list):
        errors.add("questions", f"expected array, got {type(questions).__name__}")
        return []

    bodies: List[Dict[str, Any]] = []
    for idx, item in enumerate(questions):
        path = f"questions[{idx}]"
        if not isinstance(item, Mapping):
            errors.add(path, "expected object")
            continue
        body = _check_body(item, path, errors)
        body["topic"] = _check_text(item.get("topic"), _join(path, "topic"), errors)
        body["difficulty"] = _check_difficulty(item.get("difficulty"), _join(path, "difficulty"), errors)
        bodies.append(body)

    if errors:
        return []
    return [
        BulkQuestionRecord(
            question_text=body["question_text"],
            options=_options(body["options"]),
            correct_option_index=body["correct_option_index"],
            topic=body["topic"],
            difficulty=body["difficulty"],
            explanation=body["explanation"],
            marks=body["marks"],
        )
        for body in bodies
    ]


def validate(candidate: Any, shape: Shape, *, generated: bool = True):
    """
    Check ``candidate`` against ``shape`` and return the typed value.

    ``generated`` applies the tighter limits for machine-generated passages
    (3-5 sub-questions of exactly 4 options each). Raises ValidationError
    listing every violation found.
    """

    errors = _Violations()
    if shape == Shape.SINGLE_QUESTION:
        result: Any = _validate_single(candidate, errors, generated)
    elif shape == Shape.BULK_QUESTION_LIST:
        result = _validate_bulk(candidate, errors)
    else:
        raise ValueError(f"Unknown shape: {shape!r}")

    if errors:
        logger.debug("%s rejected with %d violation(s)", shape.value, len(errors))
        raise ValidationError(shape.value, errors.items)
    return result
