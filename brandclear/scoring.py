"""
Trademarkability Scoring
========================
Blends five signals into one 0-100 score, then lets the LLM nudge it by at most
10 points either way:

    25%  distinctiveness (Abercrombie category)
    25%  conflict risk   (trademark conflicts found)
    20%  registrability  (length, similar companies, clean register)
    15%  web presence score
    15%  trademark search score
"""
import logging
import math
from typing import List, Optional, Tuple

from .llm import StructuredLLM
from .prompts import build_ai_score_adjustment_prompt
from .schemas import (
    AiScoreAdjustment,
    ScoreBreakdown,
    TrademarkabilityScore,
    TrademarkResult,
    WebSearchResult,
)

logger = logging.getLogger(__name__)

DISTINCTIVENESS_SCORES = {
    "fanciful": 95,
    "arbitrary": 85,
    "suggestive": 70,
    "descriptive": 30,
    "generic": 0,
}
UNKNOWN_CATEGORY_SCORE = 50

WEIGHTS = {
    "distinctiveness": 0.25,
    "conflict_risk": 0.25,
    "registrability": 0.20,
    "web_search": 0.15,
    "trademark": 0.15,
}

GRADE_THRESHOLDS: List[Tuple[int, str]] = [(85, "A"), (70, "B"), (55, "C"), (40, "D")]


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def distinctiveness_score(category: str) -> int:
    return DISTINCTIVENESS_SCORES.get(category, UNKNOWN_CATEGORY_SCORE)


def conflict_risk_score(trademark: TrademarkResult) -> float:
    conflicts = trademark.conflicts
    max_similarity = max([0.0] + [c.similarity_score for c in conflicts])
    score = 100 - 15 * len(conflicts) - 40 * max_similarity
    if any(c.overlapping_classes for c in conflicts):
        score -= 20
    return clamp(score)


def registrability_score(name: str, web_search: WebSearchResult, trademark: TrademarkResult) -> float:
    score = 80
    if len(name) <= 8:
        score += 5
    if len(name) <= 5:
        score += 5
    score -= 10 * len(web_search.similar_companies)
    if not trademark.conflicts:
        score += 10
    return clamp(score)


def algorithmic_score(breakdown: ScoreBreakdown) -> int:
    total = sum(getattr(breakdown, key) * weight for key, weight in WEIGHTS.items())
    return round_half_up(total)


def grade_for(overall: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if overall >= threshold:
            return grade
    return "F"


def combine(algorithmic: int, adjustment: int) -> int:
    return int(clamp(algorithmic + adjustment))


def generate_report(
    name: str,
    category: str,
    grade: str,
    breakdown: ScoreBreakdown,
    web_search: WebSearchResult,
    trademark: TrademarkResult,
    ai_reasoning: str,
) -> str:
    parts = []

    if breakdown.distinctiveness >= 85:
        parts.append(f'"{name}" is a {category} name, providing strong inherent trademark protection.')
    elif breakdown.distinctiveness >= 70:
        parts.append(f'"{name}" is a {category} name, offering good inherent distinctiveness.')
    else:
        parts.append(f'"{name}" is a {category} name with moderate inherent distinctiveness.')

    similar = web_search.similar_companies
    if similar:
        noun = "entity" if len(similar) == 1 else "entities"
        parts.append(
            f"Web search found {len(similar)} similar {noun}: {', '.join(similar)}. {web_search.ai_assessment}".rstrip()
        )
    else:
        parts.append("No similar companies or brands were found in web search results.")

    if trademark.conflicts:
        top = trademark.conflicts[0]
        plural = "" if len(trademark.conflicts) == 1 else "s"
        overlap = ", class overlap" if top.overlapping_classes else ""
        parts.append(
            f'{len(trademark.conflicts)} trademark conflict{plural} found. '
            f'Most similar: "{top.registered_name}" ({top.similarity_score * 100:.0f}% similarity{overlap}).'
        )
        if breakdown.conflict_risk >= 50:
            parts.append("These do not appear to pose a blocking conflict but warrant review.")
        else:
            parts.append("These conflicts may require further professional analysis before proceeding.")
    else:
        parts.append("No significant trademark conflicts were identified.")

    unverified = []
    if web_search.unverified:
        unverified.append("web presence")
    if trademark.unverified:
        unverified.append("trademark records")
    if unverified:
        parts.append(f"Unverified: the {' and '.join(unverified)} check could not reach its data source.")

    if ai_reasoning:
        parts.append(ai_reasoning)

    parts.append(f"Overall grade: {grade}.")
    return " ".join(parts)


class TrademarkabilityScorer:
    """Algorithmic score + LLM adjustment. The LLM can never block scoring."""

    def __init__(self, llm: Optional[StructuredLLM] = None):
        self.llm = llm

    async def request_adjustment(
        self,
        name: str,
        algorithmic: int,
        category: str,
        trademark: TrademarkResult,
        web_search: WebSearchResult,
        domain_available: bool,
    ) -> Tuple[int, str]:
        if self.llm is None:
            return 0, ""
        try:
            result = await self.llm.assess(
                build_ai_score_adjustment_prompt(
                    name,
                    algorithmic,
                    category,
                    len(trademark.conflicts),
                    web_search.details,
                    domain_available,
                ),
                AiScoreAdjustment,
            )
        except Exception as e:
            logger.error(f"AI score adjustment failed for '{name}': {e}")
            return 0, ""
        return result.adjustment, result.reasoning

    async def score(
        self,
        name: str,
        category: str,
        trademark: TrademarkResult,
        web_search: WebSearchResult,
        domain_available: bool,
    ) -> TrademarkabilityScore:
        breakdown = ScoreBreakdown(
            distinctiveness=distinctiveness_score(category),
            conflict_risk=conflict_risk_score(trademark),
            registrability=registrability_score(name, web_search, trademark),
            web_search=web_search.score,
            trademark=trademark.score,
        )
        algorithmic = algorithmic_score(breakdown)

        adjustment, reasoning = await self.request_adjustment(
            name, algorithmic, category, trademark, web_search, domain_available
        )

        overall = combine(algorithmic, adjustment)
        grade = grade_for(overall)
        logger.info(f"Score for '{name}': algorithmic={algorithmic}, adjustment={adjustment:+d}, overall={overall} ({grade})")

        return TrademarkabilityScore(
            overall=overall,
            breakdown=breakdown,
            ai_adjustment=adjustment,
            grade=grade,
            report=generate_report(name, category, grade, breakdown, web_search, trademark, reasoning),
        )
