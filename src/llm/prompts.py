# src/llm/prompts.py
"""Prompt sent alongside every physique photo."""

ANALYSIS_PROMPT = """You are an expert fitness trainer and anatomist. Analyze this muscle development photo and provide a comprehensive assessment in valid JSON format only:
{
  "analysis_metadata": {
    "image_quality": "excellent|good|fair|poor",
    "visible_muscle_groups": ["chest", "shoulders", "arms", "back", "legs", "abs", "glutes"],
    "analysis_confidence": 0-100,
    "photo_angle": "front|back|side|multiple"
  },
  "muscle_analysis": [
    {
      "muscle_name": "Scientific muscle name",
      "common_name": "Common name",
      "muscle_group": "chest|shoulders|arms|back|legs|abs|glutes",
      "development_score": 1-10,
      "development_category": "underdeveloped|developing|moderate|well-developed|exceptional",
      "specific_notes": "Detailed observation",
      "visibility_in_photo": "clearly_visible|partially_visible|not_visible"
    }
  ],
  "overall_assessment": {
    "strongest_muscles": ["muscle1", "muscle2"],
    "weakest_muscles": ["muscle3", "muscle4"],
    "overall_physique_score": 1-10,
    "body_symmetry_score": 1-10,
    "muscle_proportion_balance": "poor|fair|good|excellent"
  },
  "recommendations": [
    {
      "muscle_target": "Target muscle",
      "priority": "low|medium|high",
      "suggested_exercises": ["exercise1", "exercise2"],
      "training_frequency": "frequency recommendation"
    }
  ],
  "limitations": ["any limitations in analysis"]
}

Scoring criteria:
- 1-3: Underdeveloped (minimal visible muscle definition)
- 4-5: Developing (some muscle definition visible)
- 6-7: Moderate (good muscle development and definition)
- 8-9: Well-developed (excellent muscle development)
- 10: Exceptional (professional bodybuilder level)

Only analyze clearly visible muscles. If image quality is poor or muscles are not clearly visible, indicate in analysis_metadata and limitations."""

CONNECTION_TEST_PROMPT = "Test connection"
