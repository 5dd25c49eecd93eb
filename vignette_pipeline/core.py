"""Core utilities shared by the generator and validator."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from vignette_pipeline.errors import (
    ResponseJSONError,
    ResponseSchemaError,
    ResponseWrapperError,
)

logger = logging.getLogger(__name__)

_WORD_PATTERN = re.compile(r"\w+")
_FENCE_OPEN = re.compile(r"^```[A-Za-z]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")
_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def count_words(text: str) -> int:
    """
    Count word-boundary tokens in text.

    Contractions and hyphenated words count once per alphanumeric run, so
    "don't" and "well-known" are two words each.

    Args:
        text (str): Passage to count.

    Returns:
        int: Number of word tokens.
    """
    if not text:
        return 0
    return len(_WORD_PATTERN.findall(text))


def _fence_markers(text: str) -> tuple[bool, bool]:
    text = text.strip()
    return text.startswith("```"), len(text) > 3 and text.endswith("```")


def strip_code_fence(raw_text: str) -> str:
    """
    Remove markdown code fence markers around a response payload.

    The opening and closing markers are stripped independently, so a reply
    truncated before its closing fence still yields its payload. Unwrapped
    text is returned trimmed.

    Args:
        raw_text (str): Raw completion text.

    Returns:
        str: Payload with the wrapper removed.
    """
    text = raw_text.strip()
    opens, closes = _fence_markers(text)
    if opens:
        text = _FENCE_OPEN.sub("", text, count=1)
    if closes:
        text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def decode_json_payload(raw_text: str, expected: type = list) -> Any:
    """
    Decode a JSON payload from a completion in two steps: strip, then parse.

    A one-sided fence is tolerated when the payload inside it parses.

    Args:
        raw_text (str): Raw completion text, optionally fenced.
        expected (type): Required top-level JSON type (list or dict).

    Returns:
        Any: The decoded JSON value.

    Raises:
        ResponseWrapperError: If the fence markers are unbalanced and the
            payload does not parse.
        ResponseJSONError: If the unwrapped content is not valid JSON.
        ResponseSchemaError: If the top-level value is not of the expected type.
    """
    opens, closes = _fence_markers(raw_text)
    payload = strip_code_fence(raw_text)
    try:
        if not payload:
            raise ValueError("Response is empty")
        value = json.loads(payload)
    except ValueError as exc:
        if opens != closes:
            side = "closing" if opens else "opening"
            raise ResponseWrapperError(
                f"Response is missing its {side} code fence and the payload "
                f"is not valid JSON: {exc}",
                raw_text,
            )
        raise ResponseJSONError(f"Response is not valid JSON: {exc}", raw_text)

    if not isinstance(value, expected):
        raise ResponseSchemaError(
            f"Expected a JSON {expected.__name__}, got {type(value).__name__}",
            raw_text,
        )
    return value


def render_prompt(template: str, **values: Any) -> str:
    """
    Substitute {name} placeholders in a prompt template.

    Only supplied names are replaced, so literal braces such as JSON examples
    survive untouched.

    Args:
        template (str): Prompt template.
        **values: Placeholder values.

    Returns:
        str: Rendered prompt.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in values:
            return str(values[name])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, template)


def load_prompt_template(path: Path | None, fallback: str) -> str:
    """
    Read a prompt template from disk, falling back to an inline default.

    Args:
        path (Path | None): Template file location.
        fallback (str): Template used when the file does not exist.

    Returns:
        str: Template text.
    """
    if path is not None and path.exists():
        logger.info(f"Using prompt template from {path}")
        return path.read_text()
    logger.info("Prompt template file not found, using inline default")
    return fallback
