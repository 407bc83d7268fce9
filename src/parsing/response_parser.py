# src/parsing/response_parser.py
"""Turn a raw chat-completion body into a validated AnalysisResult."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from muscleai.core.errors import MalformedResponseError
from muscleai.core.models import AnalysisResult
from muscleai.parsing.json_repair import parse_json_object

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = (
    "analysis_metadata",
    "muscle_analysis",
    "overall_assessment",
    "recommendations",
)


def extract_message_content(body: Any) -> str:
    """Read ``choices[0].message.content`` from a chat completion body.

    Structured (non-string) content is JSON-encoded so it can go through the
    same text parser.

    Raises:
        MalformedResponseError: If the body carries no message content.
    """
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponseError("No content in response", details=body) from e

    if content is None or content == "":
        raise MalformedResponseError("No content in response", details=body)
    if isinstance(content, str):
        return content
    return json.dumps(content)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_analysis(data: Any) -> AnalysisResult:
    """Check the analysis payload and build the typed result.

    Raises:
        MalformedResponseError: Naming the first missing or invalid field.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError("AI response is not a JSON object")

    for section in REQUIRED_SECTIONS:
        if data.get(section) is None:
            raise MalformedResponseError(f"Missing required field: {section}")

    metadata = data["analysis_metadata"]
    if not isinstance(metadata, dict) or not metadata.get("image_quality"):
        raise MalformedResponseError(
            "Invalid analysis metadata: missing analysis_metadata.image_quality"
        )
    if not _is_number(metadata.get("analysis_confidence")):
        raise MalformedResponseError(
            "Invalid analysis metadata: analysis_metadata.analysis_confidence must be a number"
        )

    muscles = data["muscle_analysis"]
    if not isinstance(muscles, list) or not muscles:
        raise MalformedResponseError(
            "Invalid muscle analysis data: muscle_analysis must be a non-empty list"
        )

    for i, muscle in enumerate(muscles):
        where = f"muscle_analysis[{i}]"
        if not isinstance(muscle, dict):
            raise MalformedResponseError(f"Invalid muscle analysis entry: {where} is not an object")
        if not muscle.get("muscle_name"):
            raise MalformedResponseError(
                f"Invalid muscle analysis entry: {where}.muscle_name is missing"
            )
        score = muscle.get("development_score")
        if not _is_number(score):
            raise MalformedResponseError(
                f"Invalid muscle analysis entry: {where}.development_score must be a number"
            )
        if not 1 <= score <= 10:
            raise MalformedResponseError(
                f"Invalid muscle analysis entry: {where}.development_score "
                f"{score} is outside [1, 10]"
            )

    if not isinstance(data["recommendations"], list):
        raise MalformedResponseError("Invalid recommendations: expected a list")

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in first["loc"])
        raise MalformedResponseError(
            f"Schema validation failed at {loc}: {first['msg']}",
            details=e.errors(include_url=False),
        ) from e


def parse_analysis_response(raw_text: str) -> AnalysisResult:
    """Extract, repair and validate the analysis carried by raw_text."""
    data = parse_json_object(raw_text)
    result = validate_analysis(data)
    logger.info(
        "Parsed analysis: %d muscles, %d recommendations",
        len(result.muscle_scores), len(result.recommendations),
    )
    return result


def parse_model_body(body: Any) -> AnalysisResult:
    """Parse a full chat completion body."""
    return parse_analysis_response(extract_message_content(body))
