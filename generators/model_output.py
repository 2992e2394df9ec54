"""Strict parsing of structured model output.

Model responses are located (fenced or bare JSON), parsed, and validated
against a pydantic model. Malformed JSON and schema mismatches raise distinct
errors; both keep the raw response for postmortem.
"""

import json
import logging
import re
from typing import TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCED = re.compile(r"```(?:json)?\s*\n([\s\S]*?)\n```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


class ModelOutputError(Exception):
    """Model output could not be turned into the expected structure."""

    def __init__(self, message: str, raw_output: str = ""):
        super().__init__(message)
        self.raw_output = raw_output


class ModelOutputSyntaxError(ModelOutputError):
    """The response is not valid JSON."""


class ModelOutputSchemaError(ModelOutputError):
    """The response is JSON but does not match the expected schema."""


def extract_json(text: str) -> str:
    """Extract JSON from a response that may contain markdown fences."""
    match = _FENCED.search(text)
    if match:
        return match.group(1)

    match = _BARE_OBJECT.search(text)
    if match:
        return match.group(0)

    return text


def parse_model_output(text: str, model_cls: type[ModelT]) -> ModelT:
    """Parse-or-reject: return a validated `model_cls` instance or raise."""
    try:
        data = json.loads(extract_json(text))
    except json.JSONDecodeError as e:
        logger.debug("Unparseable model output: %s", text[:500])
        raise ModelOutputSyntaxError(f"Model output is not valid JSON: {e}", text) from e

    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        logger.debug("Schema mismatch in model output: %s", e)
        raise ModelOutputSchemaError(
            f"Model output does not match {model_cls.__name__} ({e.error_count()} errors)", text
        ) from e


def response_text(response) -> str:
    """Concatenated text blocks of an Anthropic messages response."""
    return "".join(block.text for block in response.content if getattr(block, "type", "text") == "text")
