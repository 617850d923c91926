import json
import re
from dataclasses import dataclass, field
from typing import Any, Generic, List, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from domain.errors import LLMParseError

T = TypeVar("T", bound=BaseModel)

_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.S | re.I)


@dataclass(frozen=True)
class ParseOk(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class SchemaError:
    message: str
    details: List[Any] = field(default_factory=list)

    def unwrap(self):
        raise LLMParseError(self.message, self.details)


ParseResult = Union[ParseOk[T], SchemaError]


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    m = _FENCE.match(cleaned)
    return m.group(1).strip() if m else cleaned


def _first_object(text: str) -> str | None:
    """Return the first balanced top-level `{...}` block, string-aware."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_str = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_str:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_str = False
            elif ch == '"':
                in_str = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def extract_json(raw_text: str) -> Any:
    """Decode an LLM response that may be fenced or wrapped in prose."""
    cleaned = _strip_fences(raw_text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        block = _first_object(cleaned)
        if block is None:
            raise LLMParseError(f"Failed to parse LLM response as JSON: {exc}") from exc
        try:
            return json.loads(block)
        except json.JSONDecodeError as inner:
            raise LLMParseError(f"Failed to parse LLM response as JSON: {inner}") from inner


def parse_llm_response(raw_text: str, model: Type[T]) -> ParseResult:
    try:
        data = extract_json(raw_text)
    except LLMParseError as exc:
        return SchemaError(str(exc))
    if not isinstance(data, dict):
        return SchemaError(f"LLM response must be a JSON object, got {type(data).__name__}")
    try:
        return ParseOk(model.model_validate(data))
    except ValidationError as exc:
        return SchemaError(f"LLM response failed validation for {model.__name__}", exc.errors(include_url=False))
