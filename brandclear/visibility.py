"""
Visibility Module - Web Presence Check
======================================
Searches the web for existing businesses using a candidate name and asks the LLM
whether any hit is a genuine same-or-adjacent-industry conflict:
- Serper (Google) search for "<name>" company OR brand OR startup OR software
- Top 10 organic hits + knowledge graph formatted for the LLM
- Fail open: a broken search API or LLM never blocks the pipeline
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from .config import Settings, get_settings
from .errors import UpstreamError, UpstreamNotConfigured
from .llm import StructuredLLM
from .policy import BaseChecker, FailurePolicy
from .prompts import build_web_search_assessment_prompt
from .retry import RetryConfig, DEFAULT_RETRY_CONFIG, with_retry
from .schemas import WebSearchAssessment, WebSearchResult

logger = logging.getLogger(__name__)

SERPER_API_URL = "https://google.serper.dev/search"
MAX_ORGANIC_RESULTS = 10
SIMILAR_COMPANY_PENALTY = 20
CONFLICT_SCORE_CAP = 40


@dataclass
class SearchHit:
    title: str
    link: str = ""
    snippet: str = ""
    position: int = 0


@dataclass
class KnowledgeGraphEntry:
    title: str = ""
    type: str = ""
    description: str = ""


@dataclass
class SearchResponse:
    organic: List[SearchHit] = field(default_factory=list)
    knowledge_graph: Optional[KnowledgeGraphEntry] = None


def build_search_query(name: str) -> str:
    return f'"{name}" company OR brand OR startup OR software'


def parse_serper_response(data: dict) -> SearchResponse:
    organic = []
    for i, item in enumerate(data.get("organic") or []):
        organic.append(SearchHit(
            title=item.get("title", ""),
            link=item.get("link", ""),
            snippet=item.get("snippet", ""),
            position=item.get("position", i + 1),
        ))
    kg = data.get("knowledgeGraph")
    knowledge_graph = None
    if kg:
        knowledge_graph = KnowledgeGraphEntry(
            title=kg.get("title", ""),
            type=kg.get("type", ""),
            description=kg.get("description", ""),
        )
    return SearchResponse(organic=organic, knowledge_graph=knowledge_graph)


def format_search_results_for_ai(response: SearchResponse) -> str:
    parts = []

    if response.knowledge_graph:
        kg = response.knowledge_graph
        parts.append(f"Knowledge Graph: {kg.title} ({kg.type}) - {kg.description}")

    for hit in response.organic[:MAX_ORGANIC_RESULTS]:
        parts.append(f"[{hit.position}] {hit.title}\n    {hit.snippet}")

    return "\n\n".join(parts) or "No results found."


def web_presence_score(assessment: WebSearchAssessment) -> int:
    score = 100 - SIMILAR_COMPANY_PENALTY * len(assessment.conflicting_entities)
    if assessment.has_conflict:
        score = min(score, CONFLICT_SCORE_CAP)
    return max(0, min(100, score))


class SerperSearchProvider:
    """Google results through the Serper API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
        retry_config: RetryConfig = DEFAULT_RETRY_CONFIG,
    ):
        settings = settings or get_settings()
        self.api_key = api_key if api_key is not None else settings.serper_api_key
        self.client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self.retry_config = retry_config

    async def search(self, query: str, num: int = MAX_ORGANIC_RESULTS) -> SearchResponse:
        if not self.api_key:
            raise UpstreamNotConfigured("SERPER_API_KEY is not set")

        async def call():
            res = await self.client.post(
                SERPER_API_URL,
                headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
                json={"q": query, "num": num},
            )
            if res.status_code >= 400:
                raise UpstreamError(f"Serper API error: {res.status_code}", status=res.status_code)
            return res.json()

        data = await with_retry(call, self.retry_config)
        return parse_serper_response(data)

    async def aclose(self) -> None:
        await self.client.aclose()


class WebPresenceChecker(BaseChecker):
    """Search + LLM assessment of existing brands using the candidate name."""

    failure_policy = FailurePolicy.FAIL_OPEN
    step = "web_search"

    def __init__(self, search_provider: SerperSearchProvider, llm: StructuredLLM):
        self.search_provider = search_provider
        self.llm = llm

    async def check(self, name: str, industry: str = "") -> WebSearchResult:
        return await self.run(name, industry)

    async def _check(self, name: str, industry: str = "") -> WebSearchResult:
        response = await self.search_provider.search(build_search_query(name))
        formatted = format_search_results_for_ai(response)

        assessment = await self.llm.assess(
            build_web_search_assessment_prompt(name, formatted, industry),
            WebSearchAssessment,
        )

        logger.info(
            f"Web presence for '{name}': conflict={assessment.has_conflict}, "
            f"entities={assessment.conflicting_entities}"
        )
        return WebSearchResult(
            passed=not assessment.has_conflict,
            score=web_presence_score(assessment),
            details=assessment.assessment,
            similar_companies=assessment.conflicting_entities,
            ai_assessment=assessment.assessment,
        )

    def _fallback(self, name: str, error: Exception, industry: str = "") -> WebSearchResult:
        return WebSearchResult(
            passed=True,
            score=100,
            details="Web search unavailable - skipped due to an error",
            similar_companies=[],
            ai_assessment="Web search could not be completed. Proceeding with caution.",
            unverified=True,
        )
