import pytest

from app.core.exceptions import ExtractionFailed, InputTooLarge, OracleTimeout
from app.services.bulk_parser import BulkQuestionParser, split_blocks
from app.services.prompts import BULK_QUESTIONS_INSTRUCTIONS
from app.services.schema_registry import Shape

BATCH = """What is 2+2?
A) 3
B) 4
Answer: B
---
Capital of France?
1. Paris
2. Rome
Correct: 1
  ---
Largest planet?
Jupiter
Saturn
Ans: Option A
"""


def _record(text, correct=0, **extra):
    record = {"questionText": text, "options": [{"text": "a"}, {"text": "b"}], "correctOptionIndex": correct}
    record.update(extra)
    return record


def test_split_blocks_on_delimiter_lines_only():
    text = "Q1 uses a - b --- c\n---\n\nQ2\n  ---  \nQ3\n---\n---\n"

    assert split_blocks(text) == ["Q1 uses a - b --- c", "Q2", "Q3"]


def test_records_keep_input_order_with_defaults(make_oracle):
    oracle = make_oracle({"questions": [_record("Q1", 1), _record("Q2", 0, topic="Geography"), _record("Q3")]})

    records = BulkQuestionParser(oracle).parse(BATCH)

    assert [r.question_text for r in records] == ["Q1", "Q2", "Q3"]
    assert records[1].topic == "Geography"
    assert all(r.marks == 1 and r.difficulty is None for r in records)


def test_single_oracle_call_for_the_whole_batch(make_oracle):
    oracle = make_oracle({"questions": [_record("Q1"), _record("Q2"), _record("Q3")]})

    BulkQuestionParser(oracle).parse(BATCH)

    assert len(oracle.calls) == 1
    instructions, schema, raw_text = oracle.calls[0]
    assert instructions == BULK_QUESTIONS_INSTRUCTIONS
    assert schema.shape == Shape.BULK_QUESTION_LIST
    assert raw_text == BATCH


def test_scenario_b_strict_policy_fails_whole_batch(make_oracle):
    missing_answer = _record("Q2")
    del missing_answer["correctOptionIndex"]
    oracle = make_oracle({"questions": [_record("Q1"), missing_answer, _record("Q3")]})

    with pytest.raises(ExtractionFailed) as exc_info:
        BulkQuestionParser(oracle).parse(BATCH)

    violations = exc_info.value.violations
    assert len(violations) == 1
    assert violations[0].path == "questions[1].correctOptionIndex"
    assert violations[0].message.startswith("block 2:")


def test_omitted_blocks_are_allowed(make_oracle):
    oracle = make_oracle({"questions": [_record("Q1"), _record("Q3")]})

    records = BulkQuestionParser(oracle).parse(BATCH)

    assert [r.question_text for r in records] == ["Q1", "Q3"]


def test_more_records_than_blocks_fails(make_oracle):
    oracle = make_oracle({"questions": [_record(f"Q{i}") for i in range(4)]})

    with pytest.raises(ExtractionFailed) as exc_info:
        BulkQuestionParser(oracle).parse(BATCH)

    assert "4 questions for 3 block(s)" in exc_info.value.reason


@pytest.mark.parametrize("output", [[_record("Q1")], {"data": [_record("Q1")]}])
def test_missing_wrapper_fails(make_oracle, output):
    with pytest.raises(ExtractionFailed):
        BulkQuestionParser(make_oracle(output)).parse(BATCH)


def test_empty_model_output(make_oracle):
    with pytest.raises(ExtractionFailed) as exc_info:
        BulkQuestionParser(make_oracle(None)).parse(BATCH)

    assert exc_info.value.reason == "empty model output"


def test_delimiters_only_is_rejected_before_calling_oracle(make_oracle):
    oracle = make_oracle({"questions": []})

    with pytest.raises(ExtractionFailed):
        BulkQuestionParser(oracle).parse("---\n---\n")

    assert oracle.calls == []


def test_block_limit(monkeypatch, make_oracle):
    monkeypatch.setenv("QINGEST_MAX_BULK_BLOCKS", "2")
    oracle = make_oracle({"questions": []})

    with pytest.raises(InputTooLarge) as exc_info:
        BulkQuestionParser(oracle).parse(BATCH)

    assert exc_info.value.limit_name == "max_bulk_blocks"
    assert exc_info.value.actual == 3
    assert oracle.calls == []


def test_parse_sections_isolates_failures(make_oracle):
    def answer(raw_text):
        if "broken" in raw_text:
            return {"questions": [{"questionText": "Q", "options": []}]}
        return {"questions": [_record(block) for block in split_blocks(raw_text)]}

    oracle = make_oracle(answer)
    sections = {
        "Quantitative Aptitude": "Q1\n---\nQ2",
        "Reasoning": "broken block",
        "English": "Q3",
    }

    results = BulkQuestionParser(oracle).parse_sections(sections)

    assert [r.section for r in results] == list(sections)
    assert [len(r.records) for r in results] == [2, 0, 1]
    assert results[0].ok and results[2].ok
    assert isinstance(results[1].error, ExtractionFailed)
    assert len(oracle.calls) == 3


def test_parse_sections_reports_oracle_errors_per_section(make_oracle):
    oracle = make_oracle(error=OracleTimeout("slow"))

    results = BulkQuestionParser(oracle).parse_sections({"A": "Q1", "B": "Q2"})

    assert all(isinstance(r.error, OracleTimeout) for r in results)


def test_empty_result_for_non_empty_input_fails(make_oracle):
    with pytest.raises(ExtractionFailed) as exc_info:
        BulkQuestionParser(make_oracle({"questions": []})).parse(BATCH)

    assert exc_info.value.reason == "no questions extracted from 3 block(s)"


def test_parse_sections_with_nan_marks_keeps_other_sections(make_oracle):
    def answer(raw_text):
        if raw_text == "bad":
            return {"questions": [_record("Q", marks=float("nan"))]}
        return {"questions": [_record(raw_text)]}

    results = BulkQuestionParser(make_oracle(answer)).parse_sections({"A": "Q1", "B": "bad"})

    assert results[0].ok and [r.question_text for r in results[0].records] == ["Q1"]
    assert isinstance(results[1].error, ExtractionFailed)
    assert results[1].error.violations[0].path == "questions[0].marks"


def test_parse_sections_contains_unexpected_errors(make_oracle):
    def answer(raw_text):
        if raw_text == "bad":
            raise RuntimeError("oracle client bug")
        return {"questions": [_record(raw_text)]}

    results = BulkQuestionParser(make_oracle(answer)).parse_sections({"A": "Q1", "B": "bad"})

    assert results[0].ok
    assert isinstance(results[1].error, ExtractionFailed)
    assert "oracle client bug" in results[1].error.reason
