"""Parsing of loosely structured JSON replies from generative models."""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

_FENCE_PATTERN = re.compile(r"```(?:json)?")


class ModelOutputParseError(ValueError):
    """Raised when a model reply cannot be decoded as JSON."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


@dataclass
class ParseResult:
    """Outcome of parsing a model reply: either a value or an error."""
    value: Any = None
    error: Optional[ModelOutputParseError] = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the parsed value or raise the parse error."""
        if self.error is not None:
            raise self.error
        return self.value


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace."""
    return _FENCE_PATTERN.sub("", text or "").strip()


def parse_model_json(text: Optional[str]) -> ParseResult:
    """Decode a model reply as JSON after stripping code fences.

    Never raises; failures are reported through ``ParseResult.error``.
    """
    if text is None:
        return ParseResult(error=ModelOutputParseError("Model reply is empty"))

    cleaned = strip_code_fences(text)
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return ParseResult(
            error=ModelOutputParseError(f"Model reply is not valid JSON: {e}", raw_text=cleaned),
            text=cleaned
        )
    return ParseResult(value=value, text=cleaned)
