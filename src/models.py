# File: models.py
# Pydantic models for API request and response validation.

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class NormalizeRequest(BaseModel):
    """Request model for normalizing an existing espeak transcription."""

    phonemes: str = Field(
        ...,
        description="Raw phoneme string as produced by espeak (stress marks and '^' ties allowed).",
    )
    include_metadata: Optional[bool] = Field(
        False,
        description="If true, the response carries normalization counters.",
    )


class PhonemizeRequest(BaseModel):
    """Request model for the text → normalized phonemes endpoint."""

    text: str = Field(..., min_length=1, description="Text to be phonemized.")
    include_metadata: Optional[bool] = Field(
        False,
        description="If true, the response carries the raw espeak output and normalization counters.",
    )


class PhonemeResponse(BaseModel):
    """Normalized phonemes, optionally with processing metadata."""

    phonemes: str = Field(..., description="Normalized phoneme string.")
    raw_phonemes: Optional[str] = Field(
        None, description="espeak output before normalization (text endpoint only)."
    )
    metadata: Optional[Dict[str, int]] = Field(
        None, description="Counters describing what normalization changed."
    )


class RuleModel(BaseModel):
    pattern: str
    replacement: str


class RuleTableResponse(BaseModel):
    """The built-in rewrite rules, in the order they are applied."""

    rules: List[RuleModel]


class HealthResponse(BaseModel):
    ok: bool = True
    phonemizer_loaded: bool = False
    espeak_version: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response model for API errors."""

    detail: str = Field(..., description="A human-readable explanation of the error.")


# --- End File: models.py ---
