"""Normalization of vision-model replies into AnalysisResult."""

import logging
from typing import Optional

from pydantic import ValidationError

from app.models.schemas import AnalysisResult
from config.settings import PROMPT_TEMPLATES
from .model_interface import BaseVisionInterface
from .parsing import parse_model_json

logger = logging.getLogger(__name__)

RAW_TEXT_DISH_NAME = "Scanned Food"
RAW_TEXT_REASON = "Parsed from raw text"
ANALYSIS_FIELDS = ("isFood", "dishName", "ingredients", "reason")


def strip_data_url(image_data: str) -> str:
    """Return the base64 payload of a data URL, or the input unchanged."""
    if "," in image_data:
        payload = image_data.split(",", 1)[1]
        if payload:
            return payload
    return image_data


def result_from_raw_text(text: str) -> AnalysisResult:
    """Lenient fallback: treat unparseable text as an ingredient list."""
    return AnalysisResult(
        is_food=True,
        dish_name=RAW_TEXT_DISH_NAME,
        ingredients=[part.strip() for part in text.split(",")],
        reason=RAW_TEXT_REASON
    )


def _valid_fields(data: dict) -> dict:
    """Keep the reply fields that validate on their own, drop the rest."""
    fields = {}
    for key in ANALYSIS_FIELDS:
        if key not in data:
            continue
        try:
            AnalysisResult.model_validate({key: data[key]})
        except ValidationError:
            logger.warning(f"Dropping vision field {key!r} with unexpected value {data[key]!r}")
            continue
        fields[key] = data[key]
    return fields


def normalize_analysis(text: str) -> Optional[AnalysisResult]:
    """Turn a model reply into an AnalysisResult.

    A JSON object is trusted with defaults for missing or malformed fields,
    so a missing ``isFood`` reads as not food. Other JSON values carry no
    verdict and read as not food too, except ``null`` which yields None.
    Text that is not JSON falls back to ``result_from_raw_text``.
    """
    parsed = parse_model_json(text)
    if not parsed.ok:
        logger.warning(f"Failed to parse vision JSON, raw: {parsed.text!r}")
        return result_from_raw_text(parsed.text)

    if parsed.value is None:
        return None

    if not isinstance(parsed.value, dict):
        logger.warning(f"Vision reply is JSON but not an object: {parsed.text!r}")
        return AnalysisResult()

    try:
        return AnalysisResult.model_validate(parsed.value)
    except ValidationError as e:
        logger.warning(f"Vision reply has unexpected field types: {e}")
        return AnalysisResult.model_validate(_valid_fields(parsed.value))


class VisionAnalyzer:
    """Runs the vision model on a photo and normalizes its verdict."""

    def __init__(self, interface: BaseVisionInterface, prompt: Optional[str] = None):
        self.interface = interface
        self.prompt = prompt or PROMPT_TEMPLATES["vision_analysis"]

    def analyze(self, image_data: str) -> Optional[AnalysisResult]:
        """Analyze one photo. Transport failures yield a not-food result,
        a JSON null reply yields None.
        """
        try:
            text = self.interface.analyze_image(strip_data_url(image_data), self.prompt)
        except Exception as e:
            logger.error(f"Vision analysis failed: {e}")
            return AnalysisResult(is_food=False, error=str(e))

        return normalize_analysis(text)
