import json
import re
from typing import Any, List, Optional

from pydantic import ValidationError, field_validator

from app.common.errors import ScorerError
from app.common.schema import CamelModel

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class PhotoAnalysis(CamelModel):
    photo_index: Optional[int] = None
    sharpness: float
    brightness: float
    composition: float
    # Face fields are optional in the reply ("N/A" when no faces); they fall back to 0 / False.
    face_score: float = 0.0
    all_eyes_open: bool = False
    face_count: int = 0
    reasoning: str = ""
    final_score: float

    @field_validator("face_score", mode="before")
    @classmethod
    def _face_score_or_zero(cls, v: Any) -> float:
        try:
            return float(v)
        except (TypeError, ValueError):
            return 0.0

    @field_validator("face_count", mode="before")
    @classmethod
    def _face_count_or_zero(cls, v: Any) -> int:
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return 0

    @field_validator("all_eyes_open", mode="before")
    @classmethod
    def _only_literal_true(cls, v: Any) -> bool:
        return v is True

    @field_validator("reasoning", mode="before")
    @classmethod
    def _text_or_empty(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


class ScorerAnalysis(CamelModel):
    photos: List[PhotoAnalysis]
    best_photo_index: int
    best_photo_reasoning: str = ""


def parse_scorer_content(content: Optional[str]) -> ScorerAnalysis:
    """
    Extracts the JSON object from a scorer reply and validates its shape.

    The model sometimes wraps the JSON in prose or code fences, so the first
    '{' through the last '}' is taken as the payload.
    """
    if not content:
        raise ScorerError("No response from quality scorer")

    match = _JSON_OBJECT.search(content)
    if not match:
        raise ScorerError("Could not parse JSON from quality scorer response")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ScorerError(f"Quality scorer returned invalid JSON: {e.msg}") from e

    try:
        return ScorerAnalysis.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ScorerError(f"Quality scorer response is missing or has invalid fields: {fields}") from e
