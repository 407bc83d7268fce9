# src/core/models.py
"""Shared Pydantic domain models for the physique analysis payload.

Field aliases match the JSON keys the vision model is prompted to emit;
Python code uses the attribute names. Serialize with ``by_alias=True`` to
reproduce the wire format.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# === METADATA ===


class AnalysisMetadata(_WireModel):
    """How trustworthy the analysis is and what the model could see."""

    image_quality: Literal["excellent", "good", "fair", "poor"]
    analysis_confidence: float = Field(ge=0, le=100)
    visible_muscle_groups: list[str] = Field(default_factory=list)
    photo_angle: str = ""

    @field_validator("image_quality", mode="before")
    @classmethod
    def normalize_quality(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v


# === MUSCLE SCORES ===


class MuscleScore(_WireModel):
    """Development score for a single muscle."""

    name: str = Field(alias="muscle_name", min_length=1)
    common_name: str = ""
    group: str = Field(default="", alias="muscle_group")
    score: float = Field(alias="development_score", ge=1, le=10)
    category: str = Field(default="", alias="development_category")
    notes: str = Field(default="", alias="specific_notes")
    visibility: str = Field(default="", alias="visibility_in_photo")


# === ASSESSMENT & RECOMMENDATIONS ===


class OverallAssessment(_WireModel):
    strongest: list[str] = Field(default_factory=list, alias="strongest_muscles")
    weakest: list[str] = Field(default_factory=list, alias="weakest_muscles")
    physique_score: float | None = Field(default=None, alias="overall_physique_score")
    symmetry_score: float | None = Field(default=None, alias="body_symmetry_score")
    balance_category: str = Field(default="", alias="muscle_proportion_balance")


class Recommendation(_WireModel):
    target: str = Field(alias="muscle_target")
    priority: str = "medium"
    exercises: list[str] = Field(default_factory=list, alias="suggested_exercises")
    frequency: str = Field(default="", alias="training_frequency")


# === RESULT ===


class AnalysisResult(_WireModel):
    """Validated physique analysis returned by the vision model."""

    metadata: AnalysisMetadata = Field(alias="analysis_metadata")
    muscle_scores: list[MuscleScore] = Field(alias="muscle_analysis", min_length=1)
    overall_assessment: OverallAssessment
    recommendations: list[Recommendation]
    limitations: list[str] = Field(default_factory=list)

    def strongest_muscle(self) -> MuscleScore:
        return max(self.muscle_scores, key=lambda m: m.score)

    def weakest_muscle(self) -> MuscleScore:
        return min(self.muscle_scores, key=lambda m: m.score)

    def average_score(self) -> float:
        return sum(m.score for m in self.muscle_scores) / len(self.muscle_scores)
