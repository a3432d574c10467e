#!/usr/bin/env python3
"""
Parse pasted question text from a file into structured JSON using the extraction oracle.

Env vars (loaded from .env if present):
  GROQ_API_KEY       -> API key for the Groq chat/completions endpoint
  GROQ_API_URL       -> Optional, default https://api.groq.com/openai/v1/chat/completions
  GROQ_MODEL         -> Optional, default llama-3.3-70b-versatile

Usage:
  python scripts/ingest_questions.py --file question.txt
  python scripts/ingest_questions.py --file batch.txt --bulk --section "Quantitative Aptitude"
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from app.core.exceptions import IngestionError
from app.services.bulk_parser import parse_bulk_questions
from app.services.question_parser import parse_single_question


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Parse raw question text into structured questions.")
    parser.add_argument("--file", required=True, type=Path, help="Text file with one question/passage, or many with --bulk")
    parser.add_argument("--bulk", action="store_true", help="Treat the file as many questions separated by '---' lines")
    parser.add_argument("--section", help="Section name to attach to bulk output")
    parser.add_argument("--verbose", action="store_true", help="Log extraction progress to stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING, stream=sys.stderr)

    raw_text = args.file.read_text(encoding="utf-8")
    try:
        if args.bulk:
            records = parse_bulk_questions(raw_text)
            result = {
                "section": args.section,
                "count": len(records),
                "questions": [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records],
            }
        else:
            question = parse_single_question(raw_text)
            result = question.model_dump(mode="json", by_alias=True, exclude_none=True)
    except IngestionError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
