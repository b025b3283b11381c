"""Shared fakes: an LLM that never touches the network and stub checkers for the pipeline."""
from typing import Any, Callable, Dict, List, Optional

import pytest

from brandclear.pipeline import ValidationPipeline
from brandclear.schemas import (
    AiScoreAdjustment,
    DomainResult,
    GeneratedName,
    NiceClass,
    PreferenceSummary,
    TrademarkConflict,
    TrademarkResult,
    WebSearchResult,
)
from brandclear.scoring import TrademarkabilityScorer


class FakeLLM:
    """
    `assess` answers from `responses[schema]` (a value, an exception, or a
    callable taking the prompt). `complete_json` pops from `json_replies`.
    """

    def __init__(self, responses: Optional[Dict[type, Any]] = None, json_replies: Optional[List[Any]] = None):
        self.responses = responses or {}
        self.json_replies = list(json_replies or [])
        self.prompts: List[str] = []

    async def complete_json(self, prompt: str, schema_hint: Optional[dict] = None) -> Any:
        self.prompts.append(prompt)
        if not self.json_replies:
            return {"names": []}
        reply = self.json_replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def assess(self, prompt: str, schema):
        self.prompts.append(prompt)
        if schema not in self.responses:
            raise RuntimeError(f"no fake response for {schema.__name__}")
        response = self.responses[schema]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(prompt)
        if isinstance(response, dict):
            return schema.model_validate(response)
        return response


class StubWebChecker:
    def __init__(self, result: Optional[WebSearchResult] = None):
        self.result = result or WebSearchResult(passed=True, score=100, details="No conflicts")
        self.calls: List[str] = []

    async def check(self, name: str, industry: str = "") -> WebSearchResult:
        self.calls.append(name)
        return self.result


class StubDomainChecker:
    """Unavailable when `taken(name)` is true."""

    def __init__(self, taken: Callable[[str], bool] = lambda name: False):
        self.taken = taken
        self.calls: List[str] = []

    async def check(self, name: str, tlds: Optional[List[str]] = None) -> DomainResult:
        self.calls.append(name)
        tld = (tlds or [".com"])[0]
        available = not self.taken(name)
        return DomainResult(
            available=available,
            domain=f"{name.lower()}{tld}",
            price="$12.00" if available else None,
            source="rdap",
        )


class StubTrademarkChecker:
    def __init__(self, result: Optional[TrademarkResult] = None):
        self.result = result or TrademarkResult(passed=True, score=100, conflicts=[], risk_level="low")
        self.calls: List[str] = []

    async def check(self, name: str, nice_classes: Optional[List[int]] = None) -> TrademarkResult:
        self.calls.append(name)
        return self.result


def make_name(name: str, category: str = "fanciful", rationale: str = "Coined word") -> GeneratedName:
    return GeneratedName(name=name, rationale=rationale, distinctiveness_category=category)


def blocking_trademark() -> TrademarkResult:
    return TrademarkResult(
        passed=False,
        score=50,
        conflicts=[TrademarkConflict(
            registered_name="ZENVOKS",
            serial_number="90000001",
            status="LIVE",
            similarity_score=0.91,
            overlapping_classes=True,
            class_numbers=[9],
        )],
        risk_level="high",
    )


@pytest.fixture
def preference_summary() -> PreferenceSummary:
    return PreferenceSummary(
        industry="B2B software",
        target_audience="Engineering teams",
        uspto_classes=[NiceClass(class_number=9), NiceClass(class_number=42)],
    )


def build_pipeline(
    web: Optional[StubWebChecker] = None,
    domain: Optional[StubDomainChecker] = None,
    trademark: Optional[StubTrademarkChecker] = None,
    llm: Optional[FakeLLM] = None,
) -> ValidationPipeline:
    return ValidationPipeline(
        web or StubWebChecker(),
        domain or StubDomainChecker(),
        trademark or StubTrademarkChecker(),
        TrademarkabilityScorer(llm or FakeLLM(responses={AiScoreAdjustment: AiScoreAdjustment(adjustment=0)})),
    )
