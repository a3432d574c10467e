from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_MARKS = 1


class CamelModel(BaseModel):
    """Python attributes in snake_case, wire names in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class QuestionType(str, Enum):
    standard = "standard"
    reading_comprehension = "reading_comprehension"


class OptionSchema(CamelModel):
    """A single selectable answer choice."""

    text: str = Field(..., min_length=1)


class SubQuestion(CamelModel):
    """Question body owned by a reading-comprehension passage."""

    question_text: str = Field(..., min_length=1)
    options: List[OptionSchema] = Field(..., min_length=2)
    correct_option_index: int = Field(..., ge=0)
    explanation: Optional[str] = None
    marks: float = Field(default=DEFAULT_MARKS, gt=0)


class StandardQuestion(CamelModel):
    """Single multiple-choice question with inline options."""

    question_type: Literal[QuestionType.standard] = QuestionType.standard
    question_text: str = Field(..., min_length=1)
    options: List[OptionSchema] = Field(..., min_length=2)
    correct_option_index: int = Field(..., ge=0)
    subject: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    explanation: Optional[str] = None
    marks: float = Field(default=DEFAULT_MARKS, gt=0)


class ReadingComprehensionQuestion(CamelModel):
    """Passage plus the sub-questions generated from it."""

    question_type: Literal[QuestionType.reading_comprehension] = QuestionType.reading_comprehension
    passage: str = Field(..., min_length=1)
    sub_questions: List[SubQuestion] = Field(..., min_length=1)
    subject: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    explanation: Optional[str] = None


Question = Union[StandardQuestion, ReadingComprehensionQuestion]


class BulkQuestionRecord(CamelModel):
    """Flat record produced by bulk extraction, one per delimited block."""

    question_text: str = Field(..., min_length=1)
    options: List[OptionSchema] = Field(..., min_length=2)
    correct_option_index: int = Field(..., ge=0)
    topic: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    explanation: Optional[str] = None
    marks: float = Field(default=DEFAULT_MARKS, gt=0)


# Oracle-facing shapes. These describe what the model is asked to return and
# are rendered to JSON schema for the prompt; the registry does the checking.


class OracleSubQuestion(CamelModel):
    question_text: str = Field(..., description="The text of the sub-question based on the passage.")
    options: List[OptionSchema] = Field(..., description="Exactly 4 plausible answer options.")
    correct_option_index: int = Field(..., description="0-based index of the correct option.")
    explanation: Optional[str] = Field(default=None, description="Why the correct option is correct.")
    marks: Optional[float] = Field(default=DEFAULT_MARKS, description="Marks for the sub-question.")


class OracleSingleQuestion(CamelModel):
    question_text: Optional[str] = Field(default=None, description="Main question text (Standard type only).")
    options: Optional[List[OptionSchema]] = Field(default=None, description="Answer options (Standard type only).")
    correct_option_index: Optional[int] = Field(
        default=None, description="0-based index of the correct option (Standard type only)."
    )
    passage: Optional[str] = Field(default=None, description="Full passage text, verbatim (Reading Comprehension only).")
    sub_questions: Optional[List[OracleSubQuestion]] = Field(
        default=None, description="3 to 5 generated sub-questions (Reading Comprehension only)."
    )
    subject: Optional[str] = Field(default=None, description="Subject, e.g. Quantitative Aptitude.")
    topic: Optional[str] = Field(default=None, description="Specific topic, e.g. Time and Work.")
    difficulty: Optional[Difficulty] = None
    explanation: Optional[str] = Field(default=None, description="Explanation of the answer or overall context.")
    marks: Optional[float] = Field(default=DEFAULT_MARKS, description="Marks for the question (Standard type only).")


class OracleBulkQuestion(CamelModel):
    question_text: str = Field(..., description="The main text of the question.")
    options: List[OptionSchema] = Field(..., description="Answer options in the order they appear.")
    correct_option_index: int = Field(..., description="0-based index of the correct option.")
    topic: Optional[str] = None
    difficulty: Optional[Difficulty] = Field(default=None, description="Only when stated in the block.")
    explanation: Optional[str] = None
    marks: Optional[float] = Field(default=DEFAULT_MARKS, description="Marks for the question; 1 if not stated.")


class OracleBulkQuestionList(CamelModel):
    questions: List[OracleBulkQuestion] = Field(
        ..., description="One structured question per '---' delimited block, in input order."
    )


# API payloads


class ParseQuestionRequest(CamelModel):
    raw_text: str = Field(..., description="A single MCQ or a full reading passage.")


class ParseBulkRequest(CamelModel):
    raw_text: str = Field(..., description="Many MCQs separated by a line containing only '---'.")
    exam_id: Optional[str] = None
    section: Optional[str] = None


class BulkParseResponse(CamelModel):
    exam_id: Optional[str] = None
    section: Optional[str] = None
    count: int
    questions: List[BulkQuestionRecord]


class ParseSectionsRequest(CamelModel):
    exam_id: Optional[str] = None
    sections: Dict[str, str] = Field(..., min_length=1, description="Section name -> raw bulk text.")


class SectionParseResult(CamelModel):
    section: str
    count: int = 0
    questions: List[BulkQuestionRecord] = Field(default_factory=list)
    error: Optional[Dict[str, Any]] = None


class ParseSectionsResponse(CamelModel):
    exam_id: Optional[str] = None
    results: List[SectionParseResult]
