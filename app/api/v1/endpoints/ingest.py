from fastapi import APIRouter, Depends

from app.schemas.question import (
    BulkParseResponse,
    ParseBulkRequest,
    ParseQuestionRequest,
    ParseSectionsRequest,
    ParseSectionsResponse,
    Question,
    SectionParseResult,
)
from app.services.bulk_parser import BulkQuestionParser
from app.services.oracle import ExtractionOracle, get_oracle
from app.services.question_parser import QuestionParser

router = APIRouter()


@router.post("/questions/parse", response_model=Question, response_model_exclude_none=True)
def parse_question_endpoint(
    payload: ParseQuestionRequest, oracle: ExtractionOracle = Depends(get_oracle)
) -> Question:
    return QuestionParser(oracle).parse(payload.raw_text)


@router.post("/questions/parse-bulk", response_model=BulkParseResponse, response_model_exclude_none=True)
def parse_bulk_endpoint(payload: ParseBulkRequest, oracle: ExtractionOracle = Depends(get_oracle)) -> BulkParseResponse:
    """
    Parse many ``---`` separated questions in one go.

    The exam/section association is echoed back for the caller to apply when
    saving; nothing is persisted here.
    """

    records = BulkQuestionParser(oracle).parse(payload.raw_text)
    return BulkParseResponse(exam_id=payload.exam_id, section=payload.section, count=len(records), questions=records)


@router.post("/questions/parse-sections", response_model=ParseSectionsResponse, response_model_exclude_none=True)
def parse_sections_endpoint(
    payload: ParseSectionsRequest, oracle: ExtractionOracle = Depends(get_oracle)
) -> ParseSectionsResponse:
    results = BulkQuestionParser(oracle).parse_sections(payload.sections)
    return ParseSectionsResponse(
        exam_id=payload.exam_id,
        results=[
            SectionParseResult(
                section=result.section,
                count=len(result.records),
                questions=result.records,
                error=result.error.to_dict() if result.error else None,
            )
            for result in results
        ],
    )
