import json
import logging
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from app.core.exceptions import AnalysisError
from app.models.rubric import RubricConfig
from app.prompts.script_rubric_comparison import (
    SCRIPT_ANALYST_SYSTEM_PROMPT,
    build_comparison_prompt,
)
from app.schemas.sync import ProposedChanges
from app.services.reasoning_client import AnthropicReasoningClient

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)

_CHANGE_LISTS = ("category_changes", "criteria_changes", "red_flag_changes")


def strip_code_fences(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole response."""
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    return match.group(1).strip() if match else stripped


def _load_json_object(text: str) -> Dict[str, Any]:
    body = strip_code_fences(text)
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        # Tolerate prose around the object
        start, end = body.find("{"), body.rfind("}")
        if start == -1 or end <= start:
            raise AnalysisError("Analysis response was not valid JSON")
        try:
            data = json.loads(body[start : end + 1])
        except json.JSONDecodeError as exc:
            raise AnalysisError(f"Analysis response was not valid JSON: {exc.msg}")
    if not isinstance(data, dict):
        raise AnalysisError("Analysis response must be a JSON object")
    return data


def _dedupe(changes: List[Any], kind: str) -> List[Any]:
    seen = set()
    unique = []
    for change in changes:
        if change.key in seen:
            logger.warning("Dropping duplicate proposed %s change %s", kind, change.key)
            continue
        seen.add(change.key)
        unique.append(change)
    return unique


def parse_proposed_changes(text: str) -> ProposedChanges:
    """Turn raw model output into a validated :class:`ProposedChanges`.

    Missing or null change lists become empty lists.  Counters are
    recomputed rather than trusted, and duplicate keys keep the first
    occurrence so every change stays individually addressable.
    """
    data = _load_json_object(text)
    for name in _CHANGE_LISTS:
        if data.get(name) is None:
            data[name] = []

    try:
        proposal = ProposedChanges.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()[:3]
        )
        raise AnalysisError(f"Analysis response did not match the expected shape: {problems}")

    proposal = proposal.model_copy(
        update={
            "category_changes": _dedupe(proposal.category_changes, "category"),
            "criteria_changes": _dedupe(proposal.criteria_changes, "criteria"),
            "red_flag_changes": _dedupe(proposal.red_flag_changes, "red flag"),
        }
    )
    return proposal.with_counts()


class ChangeProposalAnalyzer:
    """Diffs a sales script against a rubric snapshot via the reasoning service."""

    def __init__(self, client: AnthropicReasoningClient) -> None:
        self._client = client

    async def analyze(
        self,
        script_content: str,
        rubric: RubricConfig,
        product_type: str,
    ) -> ProposedChanges:
        prompt = build_comparison_prompt(script_content, rubric, product_type)
        raw = await self._client.complete(SCRIPT_ANALYST_SYSTEM_PROMPT, prompt)
        proposal = parse_proposed_changes(raw)
        logger.info(
            "Analysis against rubric v%s proposed %d change(s), %d high confidence",
            rubric.version,
            proposal.total_changes,
            proposal.high_confidence_count,
        )
        return proposal
