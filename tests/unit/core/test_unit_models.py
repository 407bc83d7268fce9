# tests/unit/core/test_unit_models.py
"""Tests for core/models.py: analysis payload schema."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from muscleai.core.models import AnalysisMetadata, AnalysisResult, MuscleScore


class TestAnalysisResult:
    def test_parses_wire_keys(self, analysis_dict):
        result = AnalysisResult.model_validate(analysis_dict)
        assert result.metadata.image_quality == "good"
        assert len(result.muscle_scores) == 3
        assert result.muscle_scores[0].name == "Pectoralis Major"
        assert result.overall_assessment.physique_score == 6
        assert result.recommendations[0].exercises == ["Hanging leg raise", "Cable crunch"]
        assert result.limitations == ["Single front-facing photo"]

    def test_dump_by_alias_round_trips(self, analysis):
        wire = json.loads(analysis.model_dump_json(by_alias=True))
        assert "muscle_analysis" in wire
        assert wire["muscle_analysis"][0]["development_score"] == 7
        assert AnalysisResult.model_validate(wire) == analysis

    def test_populate_by_name(self):
        score = MuscleScore(name="Deltoid", score=6)
        assert score.name == "Deltoid"

    def test_empty_muscles_rejected(self, analysis_dict):
        analysis_dict["muscle_analysis"] = []
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(analysis_dict)

    def test_helpers(self, analysis):
        assert analysis.strongest_muscle().name == "Pectoralis Major"
        assert analysis.weakest_muscle().name == "Rectus Abdominis"
        assert analysis.average_score() == pytest.approx(6.0)

    def test_extra_keys_ignored(self, analysis_dict):
        analysis_dict["model_notes"] = "ignored"
        assert AnalysisResult.model_validate(analysis_dict)


class TestMuscleScore:
    @pytest.mark.parametrize("score", [0, 11, -1, 10.5])
    def test_score_out_of_range(self, score):
        with pytest.raises(ValidationError):
            MuscleScore(muscle_name="Deltoid", development_score=score)

    @pytest.mark.parametrize("score", [1, 7, 10, 5.5])
    def test_score_in_range(self, score):
        assert MuscleScore(muscle_name="Deltoid", development_score=score).score == score


class TestAnalysisMetadata:
    def test_quality_normalized(self):
        meta = AnalysisMetadata(image_quality=" Good ", analysis_confidence=50)
        assert meta.image_quality == "good"

    def test_unknown_quality_rejected(self):
        with pytest.raises(ValidationError):
            AnalysisMetadata(image_quality="blurry", analysis_confidence=50)

    @pytest.mark.parametrize("confidence", [-1, 101])
    def test_confidence_bounds(self, confidence):
        with pytest.raises(ValidationError):
            AnalysisMetadata(image_quality="good", analysis_confidence=confidence)
