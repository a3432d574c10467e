import copy
import threading
from typing import Any, Callable, Generator, List, Optional, Tuple

import pytest

from app.core.config import get_settings


class FakeOracle:
    """Stands in for the extraction oracle: records calls and replays a canned answer."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[Tuple[str, Any, str]] = []
        self._lock = threading.Lock()

    def invoke(self, instructions: str, schema: Any, raw_text: str) -> Any:
        with self._lock:
            self.calls.append((instructions, schema, raw_text))
        if self.error is not None:
            raise self.error
        if callable(self.response):
            return self.response(raw_text)
        return copy.deepcopy(self.response)


@pytest.fixture
def make_oracle() -> Callable[..., FakeOracle]:
    return FakeOracle


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch) -> Generator[None, None, None]:
    """Keep settings deterministic and re-read env for each test."""

    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("QINGEST_MAX_INPUT_CHARS", raising=False)
    monkeypatch.delenv("QINGEST_MAX_BULK_BLOCKS", raising=False)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


def option_list(*texts: str) -> List[dict]:
    return [{"text": text} for text in texts]


def sub_question(text: str = "What is the main idea?", correct: int = 0, n_options: int = 4) -> dict:
    return {
        "questionText": text,
        "options": option_list(*[f"Choice {i}" for i in range(n_options)]),
        "correctOptionIndex": correct,
        "explanation": "Stated in the first paragraph.",
    }


@pytest.fixture
def standard_output() -> dict:
    return {
        "questionText": "What is 2+2?",
        "options": option_list("3", "4", "5"),
        "correctOptionIndex": 1,
        "subject": "Quantitative Aptitude",
        "topic": "Arithmetic",
    }


@pytest.fixture
def make_sub_question() -> Callable[..., dict]:
    return sub_question
