"""Turn free-form model output into a MenuAnalysisResult.

Model output is untrusted. Anything we cannot read as a JSON object
degrades to an envelope carrying the raw text, so the client always has
something to render.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from schemas import BoundingBox, MenuAnalysisResult, MenuItem, MenuSection, Recommendation
from services.errors import MalformedCollaboratorResponse
from services.utils import extract_json

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_ITEM_LISTS = ("suitableItems", "neutralItems", "unsuitableItems")


def _coerce_bbox(raw: Any) -> Optional[BoundingBox]:
    if not isinstance(raw, dict):
        return None
    try:
        return BoundingBox.model_validate(raw)
    except ValidationError:
        return None


def _coerce_list(raw: Any, model: Type[M]) -> List[M]:
    if not isinstance(raw, list):
        return []
    out: List[M] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        if "bbox" in entry:
            entry = {**entry, "bbox": _coerce_bbox(entry["bbox"])}
        try:
            out.append(model.model_validate(entry))
        except ValidationError as e:
            logger.debug("Dropping malformed %s entry: %s", model.__name__, e)
    return out


def coerce_result(data: Dict[str, Any]) -> MenuAnalysisResult:
    fields: Dict[str, Any] = {
        "summary": data.get("summary"),
        "overallCompatibility": data.get("overallCompatibility"),
        "recommendations": _coerce_list(data.get("recommendations"), Recommendation),
        "menuSections": _coerce_list(data.get("menuSections"), MenuSection),
    }
    for key in _ITEM_LISTS:
        fields[key] = _coerce_list(data.get(key), MenuItem)
    return MenuAnalysisResult.model_validate(fields)


def raw_envelope(text: str) -> MenuAnalysisResult:
    return MenuAnalysisResult(rawResponse=text)


def normalize_response(text: str) -> MenuAnalysisResult:
    try:
        data = extract_json(text or "")
    except MalformedCollaboratorResponse as e:
        logger.warning("Falling back to raw response: %s", e, extra={"response_chars": len(text or "")})
        return raw_envelope(text)
    return coerce_result(data)
