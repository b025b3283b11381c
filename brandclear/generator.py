"""
Name generation and brief analysis, both backed by the structured LLM.

The model does not always return a clean `{"names": [...]}` object: sometimes the
list arrives as a JSON-encoded string, sometimes bare, sometimes with a few broken
entries. `coerce_generated_names` keeps every entry that validates and drops the rest.
"""
import json
import logging
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from .llm import StructuredLLM
from .prompts import build_analysis_prompt, build_generation_prompt, build_replacement_prompt
from .schemas import FailureFeedback, GeneratedName, GeneratedNameBatch, PreferenceSummary

logger = logging.getLogger(__name__)


def _unwrap_names(raw: Any) -> List[Any]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Generated names arrived as a string that is not JSON, discarding")
            return []

    if isinstance(raw, dict):
        raw = raw.get("names", [])
        # names itself can be double-encoded
        if isinstance(raw, str):
            return _unwrap_names(raw)

    if not isinstance(raw, list):
        logger.warning(f"Unexpected generation payload type: {type(raw).__name__}")
        return []
    return raw


def coerce_generated_names(
    raw: Any,
    count: int,
    excluded_names: Optional[Iterable[str]] = None,
) -> List[GeneratedName]:
    excluded = {n.strip().lower() for n in (excluded_names or [])}
    seen = set()
    names: List[GeneratedName] = []

    for entry in _unwrap_names(raw):
        try:
            generated = GeneratedName.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Dropping invalid generated name {entry!r}: {e.error_count()} error(s)")
            continue

        key = generated.name.lower()
        if key in excluded:
            logger.info(f"Dropping excluded name '{generated.name}'")
            continue
        if key in seen:
            continue
        seen.add(key)
        names.append(generated)

        if len(names) >= count:
            break

    return names


class NameGenerator:
    def __init__(self, llm: StructuredLLM):
        self.llm = llm

    async def generate(
        self,
        preference_summary: PreferenceSummary,
        insights: str,
        count: int,
        is_replacement: bool = False,
        failed_feedback: Optional[List[FailureFeedback]] = None,
        excluded_names: Optional[List[str]] = None,
    ) -> List[GeneratedName]:
        """Ask for `count` names; returns at most that many, none of them excluded."""
        if count <= 0:
            return []

        if is_replacement:
            prompt = build_replacement_prompt(
                preference_summary,
                insights,
                failed_feedback or [],
                excluded_names or [],
                count,
            )
        else:
            prompt = build_generation_prompt(preference_summary, insights, count)

        raw = await self.llm.complete_json(prompt, GeneratedNameBatch.model_json_schema())
        names = coerce_generated_names(raw, count, excluded_names)
        logger.info(
            f"Generated {len(names)}/{count} {'replacement ' if is_replacement else ''}names"
        )
        return names

    async def analyze(self, user_text: str) -> PreferenceSummary:
        return await self.llm.assess(build_analysis_prompt(user_text), PreferenceSummary)
