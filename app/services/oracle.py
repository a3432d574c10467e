import json
import logging
from typing import Any, Dict, Optional, Protocol

import requests

from app.core.config import Settings, get_settings
from app.core.exceptions import OracleEmptyResponse, OracleTimeout, OracleUnavailable
from app.services.schema_registry import SchemaDescriptor

logger = logging.getLogger(__name__)


class ExtractionOracle(Protocol):
    """Prompt-driven text-to-structured-data service the extractors delegate to."""

    def invoke(self, instructions: str, schema: SchemaDescriptor, raw_text: str) -> Any:
        ...


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Parse a JSON object string, trimming to the outermost braces if the model added prose or fences."""

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        start = raw.find("{")
        end = raw.rfind("}")
        if start == -1 or end <= start:
            raise OracleEmptyResponse(details={"raw_prefix": raw[:200]})
        try:
            data = json.loads(raw[start : end + 1])
        except json.JSONDecodeError as exc:
            raise OracleEmptyResponse(details={"raw_prefix": raw[:200], "error": str(exc)}) from exc
    if not isinstance(data, dict):
        raise OracleEmptyResponse(
            "model output is not a JSON object", details={"type": type(data).__name__}
        )
    return data


class GroqExtractionOracle:
    """Calls an OpenAI-compatible chat/completions endpoint (Groq by default) in JSON mode."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        model: str,
        timeout: float = 60.0,
        max_tokens: int = 4096,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        # None: every call goes through requests.post with its own connection.
        self.session = session

    @classmethod
    def from_settings(cls, settings: Settings) -> "GroqExtractionOracle":
        if not settings.oracle_api_key:
            raise OracleUnavailable("GROQ_API_KEY is not configured")
        return cls(
            api_key=settings.oracle_api_key,
            api_url=settings.oracle_api_url,
            model=settings.oracle_model,
            timeout=settings.oracle_timeout_seconds,
            max_tokens=settings.oracle_max_tokens,
        )

    def _build_payload(self, instructions: str, schema: SchemaDescriptor, raw_text: str) -> Dict[str, Any]:
        system = (
            f"{instructions}\n\n"
            f"Output schema ({schema.name}):\n{json.dumps(schema.json_schema, separators=(',', ':'))}"
        )
        user = f"Raw Text to Parse:\n'''\n{raw_text}\n'''"
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": 0,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

    def invoke(self, instructions: str, schema: SchemaDescriptor, raw_text: str) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(instructions, schema, raw_text)
        try:
            post = self.session.post if self.session is not None else requests.post
            resp = post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.Timeout as exc:
            raise OracleTimeout(
                f"Oracle did not respond within {self.timeout}s", details={"model": self.model}
            ) from exc
        except requests.RequestException as exc:
            raise OracleUnavailable(
                f"Oracle request failed: {exc}", details={"model": self.model, "url": self.api_url}
            ) from exc

        if not resp.ok:
            raise OracleUnavailable(
                f"Oracle API error {resp.status_code}",
                details={"model": self.model, "status": resp.status_code, "body": resp.text[:500]},
            )

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise OracleEmptyResponse(details={"error": f"unexpected response envelope: {exc}"}) from exc
        if not content or not content.strip():
            raise OracleEmptyResponse()

        logger.debug("Oracle %s answered %d chars for %s", self.model, len(content), schema.name)
        return parse_json_object(content)


def get_oracle() -> ExtractionOracle:
    """Build the configured oracle; used as a FastAPI dependency."""

    return GroqExtractionOracle.from_settings(get_settings())
