import json
from typing import Any, Dict

from app.core.constants import PRODUCT_TYPE_LABELS

SCRIPT_ANALYST_SYSTEM_PROMPT = (
    "You are an expert sales training analyst. You compare sales scripts "
    "against coaching rubrics and propose precise, well-justified rubric "
    "updates. Return only valid JSON."
)

SCRIPT_RUBRIC_COMPARISON_PROMPT = """You are an expert sales training analyst. Your task is to analyze a sales script and compare it against an existing coaching rubric to identify necessary updates.

## Product Type
{product_label}

## Current Coaching Rubric
```json
{rubric_json}
```

## New Sales Script Content
```
{script_content}
```

## Your Task
Analyze the sales script and compare it to the current rubric. Identify:

1. **Category Changes**: Are there new phases in the script that need new categories? Should existing categories be renamed, reweighted, or removed?

2. **Scoring Criteria Changes**: Does the script introduce new requirements that should be reflected in the 1-5 scoring criteria? Are current criteria outdated or misaligned?

3. **Red Flag Changes**: Are there new compliance requirements, prohibited phrases, or behaviors in the script that should trigger red flags? Should existing red flags be updated?

## Analysis Guidelines
- Focus on MEANINGFUL changes that will improve coaching accuracy
- Changes should be specific and actionable
- Provide a confidence score (0.0-1.0) for each change
- Include a quote from the script that supports each change
- Consider the weights: major phases should have higher weights, and enabled weights must still sum to 100 after your changes
- Use lowercase snake_case for category slugs and flag keys; reuse the existing slug or key when modifying or removing
- Don't suggest changes just for the sake of it - only when the script clearly requires them

## Required Response Format
Respond with a valid JSON object matching this exact structure:
{{
  "summary": "Brief summary of the analysis and overall alignment",
  "analysis_notes": "Detailed notes about what was found in the script",
  "category_changes": [
    {{
      "change_type": "add|modify|remove",
      "category_slug": "slug_of_category",
      "current_name": "Current name (for modify/remove)",
      "proposed_name": "New name (for add/modify)",
      "current_weight": 10,
      "proposed_weight": 15,
      "current_description": "Current description",
      "proposed_description": "New description",
      "reason": "Why this change is needed",
      "confidence": 0.85,
      "script_reference": "Quote from script supporting this"
    }}
  ],
  "criteria_changes": [
    {{
      "change_type": "add|modify|remove",
      "category_slug": "which_category",
      "score": 5,
      "current_text": "Current criteria text (for modify/remove)",
      "proposed_text": "New criteria text (for add/modify)",
      "reason": "Why this change is needed",
      "confidence": 0.80,
      "script_reference": "Quote from script supporting this"
    }}
  ],
  "red_flag_changes": [
    {{
      "change_type": "add|modify|remove",
      "flag_key": "flag_identifier",
      "current_display_name": "Current name",
      "proposed_display_name": "New name",
      "current_description": "Current description",
      "proposed_description": "New description",
      "current_severity": "critical|high|medium",
      "proposed_severity": "critical|high|medium",
      "reason": "Why this change is needed",
      "confidence": 0.90,
      "script_reference": "Quote from script supporting this"
    }}
  ],
  "total_changes": 5,
  "high_confidence_count": 3
}}

If the rubric is already well-aligned with the script and no changes are needed, return:
{{
  "summary": "The current rubric is well-aligned with the sales script.",
  "analysis_notes": "Detailed explanation of why no changes are needed",
  "category_changes": [],
  "criteria_changes": [],
  "red_flag_changes": [],
  "total_changes": 0,
  "high_confidence_count": 0
}}

Important: Your response must be ONLY valid JSON, no additional text or markdown code blocks."""


def rubric_snapshot(rubric) -> Dict[str, Any]:
    """Reduce a loaded rubric config to the fields the analyst needs."""
    return {
        "name": rubric.name,
        "version": rubric.version,
        "categories": [
            {
                "slug": cat.slug,
                "name": cat.name,
                "weight": cat.weight,
                "description": cat.description,
                "is_enabled": cat.is_enabled,
                "scoring_criteria": [
                    {"score": crit.score, "criteria_text": crit.criteria_text}
                    for crit in cat.scoring_criteria
                ],
            }
            for cat in rubric.categories
        ],
        "red_flags": [
            {
                "flag_key": flag.flag_key,
                "display_name": flag.display_name,
                "description": flag.description,
                "severity": flag.severity,
                "threshold_type": flag.threshold_type,
                "threshold_value": flag.threshold_value,
                "is_enabled": flag.is_enabled,
            }
            for flag in rubric.red_flags
        ],
    }


def build_comparison_prompt(script_content: str, rubric, product_type: str) -> str:
    return SCRIPT_RUBRIC_COMPARISON_PROMPT.format(
        product_label=PRODUCT_TYPE_LABELS.get(product_type, product_type),
        rubric_json=json.dumps(rubric_snapshot(rubric), indent=2, default=str),
        script_content=script_content,
    )
