import math
from datetime import datetime, timezone
from types import MappingProxyType
from typing import List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

DEFAULT_TARGET_LANGUAGES = ["en", "zh", "ja", "vi", "th"]

REVERSE_WEIGHT = 0.40
CULTURAL_WEIGHT = 0.25
AMBIGUOUS_WEIGHT = 0.20
TERMINOLOGY_WEIGHT = 0.15


class ModelConfig(BaseModel):
    base_url: str = "https://api.openai.com/v1"
    api_key: str
    model: str = "gpt-4"
    temperature: float = 0.2
    max_tokens: int = 1000
    timeout: float = Field(30.0, gt=0, description="Per-call provider timeout in seconds")
    max_retries: int = Field(2, ge=0)


class EngineConfig(BaseModel):
    translator_config: ModelConfig
    source_language: str = "ko"
    target_languages: List[str] = Field(default_factory=lambda: list(DEFAULT_TARGET_LANGUAGES))
    concurrency: int = Field(8, ge=1)
    enable_cache: bool = True
    cache_file: str = ".safetrans_cache.json"
    lexicon_path: Optional[str] = None
    show_progress: bool = True


# --- Lexicon entries ---

class TerminologyEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_term: str = Field(..., min_length=1)
    canonical_renderings: Tuple[str, ...]

    @field_validator("canonical_renderings")
    @classmethod
    def _non_empty(cls, value):
        if not value:
            raise ValueError("terminology entry needs at least one canonical rendering")
        return value

    def renderings(self, language: str, context: Optional[str] = None) -> List[str]:
        return list(self.canonical_renderings)

    def is_rendered_in(self, text: str) -> bool:
        lowered = text.lower()
        return any(r.lower() in lowered for r in self.canonical_renderings)


class AmbiguousEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_term: str = Field(..., min_length=1)
    contexts: Tuple[str, ...]
    renderings_by_context: Mapping[str, Tuple[str, ...]]

    @field_validator("renderings_by_context")
    @classmethod
    def _read_only(cls, value):
        return MappingProxyType(dict(value))

    @field_serializer("renderings_by_context")
    def _as_dict(self, value):
        return dict(value)

    @model_validator(mode="after")
    def _check_contexts(self):
        if len(set(self.contexts)) != len(self.contexts):
            raise ValueError(f"ambiguous term '{self.source_term}' lists a context more than once")
        if len(self.contexts) < 2:
            raise ValueError(f"ambiguous term '{self.source_term}' needs at least two contexts")
        unknown = [c for c in self.renderings_by_context if c not in self.contexts]
        if unknown:
            raise ValueError(f"ambiguous term '{self.source_term}' has renderings for unknown contexts: {unknown}")
        return self

    def renderings(self, language: str, context: Optional[str] = None) -> List[str]:
        if context is None:
            return []
        return list(self.renderings_by_context.get(context, ()))


class CulturalEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_term: str = Field(..., min_length=1)
    explanation: str = ""
    rendering_by_language: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("rendering_by_language")
    @classmethod
    def _read_only(cls, value):
        return MappingProxyType(dict(value))

    @field_serializer("rendering_by_language")
    def _as_dict(self, value):
        return dict(value)

    def renderings(self, language: str, context: Optional[str] = None) -> List[str]:
        rendering = self.rendering_by_language.get(language)
        return [rendering] if rendering else []


class Lexicon(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = "1"
    terminology: Tuple[TerminologyEntry, ...] = ()
    ambiguous: Tuple[AmbiguousEntry, ...] = ()
    cultural: Tuple[CulturalEntry, ...] = ()

    def terminology_terms(self) -> List[str]:
        return [e.source_term for e in self.terminology]

    def find_terminology(self, term: str) -> Optional[TerminologyEntry]:
        return next((e for e in self.terminology if e.source_term == term), None)

    def find_ambiguous(self, term: str) -> Optional[AmbiguousEntry]:
        return next((e for e in self.ambiguous if e.source_term == term), None)

    def find_cultural(self, term: str) -> Optional[CulturalEntry]:
        return next((e for e in self.cultural if e.source_term == term), None)


# --- Assessment results ---

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, float(value)))


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    reverse_translation_score: float = Field(..., ge=0, le=100)
    cultural_context_score: float = Field(..., ge=0, le=100)
    ambiguous_term_score: float = Field(..., ge=0, le=100)
    terminology_score: float = Field(..., ge=0, le=100)
    final_score: int = Field(..., ge=0, le=100)

    @classmethod
    def combine(cls, reverse: float, cultural: float, ambiguous: float, terminology: float) -> "ScoreBreakdown":
        reverse, cultural, ambiguous, terminology = (
            _clamp(reverse), _clamp(cultural), _clamp(ambiguous), _clamp(terminology)
        )
        weighted = (
            reverse * REVERSE_WEIGHT
            + cultural * CULTURAL_WEIGHT
            + ambiguous * AMBIGUOUS_WEIGHT
            + terminology * TERMINOLOGY_WEIGHT
        )
        return cls(
            reverse_translation_score=reverse,
            cultural_context_score=cultural,
            ambiguous_term_score=ambiguous,
            terminology_score=terminology,
            final_score=max(0, min(100, _round_half_up(weighted))),
        )

    @classmethod
    def zero(cls) -> "ScoreBreakdown":
        return cls.combine(0.0, 0.0, 0.0, 0.0)


class TranslationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str
    original: str
    translated: str
    reverse_translated: str
    score: ScoreBreakdown
    warnings: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: Literal["ok", "failed"] = "ok"
    error: Optional[str] = None  # Provider failure cause, only set when status == "failed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"
