import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.core.config import Settings, get_settings
from app.core.exceptions import (
    ExtractionFailed,
    FieldViolation,
    IngestionError,
    InputTooLarge,
    OracleEmptyResponse,
    ValidationError,
)
from app.schemas.question import BulkQuestionRecord
from app.services.oracle import ExtractionOracle, get_oracle
from app.services.prompts import BULK_QUESTIONS_INSTRUCTIONS
from app.services.question_parser import check_input_size
from app.services.schema_registry import Shape, describe, validate

logger = logging.getLogger(__name__)

BLOCK_DELIMITER = re.compile(r"^[ \t]*---[ \t\r]*$", re.MULTILINE)
_RECORD_PATH = re.compile(r"^questions\[(\d+)\]")


def split_blocks(raw_text: str) -> List[str]:
    """Split on lines holding only ``---``; blank blocks are dropped."""

    return [block.strip() for block in BLOCK_DELIMITER.split(raw_text) if block.strip()]


def _describe_violation(violation: FieldViolation) -> FieldViolation:
    """Prefix record-level violations with the 1-based block number admins see."""

    match = _RECORD_PATH.match(violation.path)
    if not match:
        return violation
    block = int(match.group(1)) + 1
    return FieldViolation(path=violation.path, message=f"block {block}: {violation.message}")


@dataclass
class SectionResult:
    section: str
    records: List[BulkQuestionRecord] = field(default_factory=list)
    error: Optional[IngestionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BulkQuestionParser:
    """
    Turns a ``---`` delimited paste of many MCQs into records, in one oracle call.

    The batch is strict: if any returned record is invalid the whole call
    fails with every violation listed. Blocks the oracle leaves out are simply
    absent from the result, but an empty result for non-empty input fails.
    """

    def __init__(self, oracle: ExtractionOracle, settings: Optional[Settings] = None) -> None:
        self.oracle = oracle
        self.settings = settings or get_settings()

    def parse(self, raw_text: str) -> List[BulkQuestionRecord]:
        check_input_size(raw_text, self.settings)
        blocks = split_blocks(raw_text)
        if not blocks:
            raise ExtractionFailed("no question blocks found")
        if len(blocks) > self.settings.max_bulk_blocks:
            raise InputTooLarge("max_bulk_blocks", self.settings.max_bulk_blocks, len(blocks))

        try:
            output = self.oracle.invoke(
                BULK_QUESTIONS_INSTRUCTIONS, describe(Shape.BULK_QUESTION_LIST), raw_text
            )
        except OracleEmptyResponse as exc:
            raise ExtractionFailed("empty model output", cause=exc) from exc
        if not output:
            raise ExtractionFailed("empty model output")

        try:
            records = validate(output, Shape.BULK_QUESTION_LIST)
        except ValidationError as exc:
            logger.warning("Bulk batch rejected: %d violation(s) for %d block(s)", len(exc.violations), len(blocks))
            raise ExtractionFailed(
                "model output failed validation",
                cause=exc,
                violations=[_describe_violation(v) for v in exc.violations],
            ) from exc

        if not records:
            raise ExtractionFailed(f"no questions extracted from {len(blocks)} block(s)")
        if len(records) > len(blocks):
            raise ExtractionFailed(f"model returned {len(records)} questions for {len(blocks)} block(s)")

        if len(records) < len(blocks):
            logger.info("Bulk parse omitted %d of %d block(s)", len(blocks) - len(records), len(blocks))
        logger.info("Parsed %d question(s) from %d block(s)", len(records), len(blocks))
        return records

    def _parse_section(self, section: str, raw_text: str) -> SectionResult:
        try:
            return SectionResult(section=section, records=self.parse(raw_text))
        except IngestionError as exc:
            logger.warning("Section %r failed: %s", section, exc.message)
            return SectionResult(section=section, error=exc)
        except Exception as exc:
            logger.exception("Section %r failed unexpectedly", section)
            return SectionResult(section=section, error=ExtractionFailed(f"unexpected error: {exc}"))

    def parse_sections(self, sections: Dict[str, str]) -> List[SectionResult]:
        """Run one bulk extraction per section concurrently; results keep the input order."""

        if not sections:
            return []
        workers = min(self.settings.max_parallel_sections, len(sections))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._parse_section, name, text) for name, text in sections.items()]
            return [future.result() for future in futures]


def parse_bulk_questions(raw_text: str, oracle: Optional[ExtractionOracle] = None) -> List[BulkQuestionRecord]:
    return BulkQuestionParser(oracle or get_oracle()).parse(raw_text)
