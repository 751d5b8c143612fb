from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from domain.curation.errors import SchemaError

RECOMMENDATION_COUNT = 3

_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: Optional[str] = None
    poster_url: Optional[str] = None


@dataclass(frozen=True)
class TasteAnalysisResult:
    """Published taste profile. Never persisted; replaced wholesale per run."""

    title: str
    suggestion: str
    recommendations: tuple[Recommendation, ...]


class TasteReply(BaseModel):
    """Schema of the generation reply (JSON mode)."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1)
    suggestion: str = Field(..., min_length=1)
    recommendations: list[str] = Field(..., min_length=RECOMMENDATION_COUNT, max_length=RECOMMENDATION_COUNT)

    @field_validator("title", "suggestion")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("recommendations")
    @classmethod
    def _strip_titles(cls, value: list[str]) -> list[str]:
        titles = [t.strip() for t in value]
        if any(not t for t in titles):
            raise ValueError("recommendation titles must not be blank")
        return titles


def build_taste_prompt(titles: Iterable[str]) -> str:
    movie_list = ", ".join(t.strip() for t in titles if t and t.strip())
    return (
        f"As a film expert, analyze this list of watched movies: {movie_list}. "
        "Based on this list, generate a response in a valid JSON format. "
        "The JSON object must contain exactly three keys: "
        "1) 'title': a creative, personalized title for the user (e.g., 'The Action Aficionado'). "
        "2) 'suggestion': a brief, one-sentence summary of their taste and a suggestion. "
        f"3) 'recommendations': an array of exactly {RECOMMENDATION_COUNT} movie titles they might enjoy."
    )


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text or "").strip()


def parse_taste_reply(text: str) -> TasteReply:
    """Parse the raw generation text; any mismatch raises SchemaError."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise SchemaError("empty taste analysis reply")
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"taste analysis reply is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise SchemaError("taste analysis reply must be a JSON object")
    try:
        return TasteReply.model_validate(payload)
    except ValidationError as exc:
        raise SchemaError(f"taste analysis reply failed validation: {exc.error_count()} error(s)") from exc
