"""
Trademark Research Module
========================
Searches active USPTO marks for a candidate name and classifies each hit:

1. Query the trademark records API (RapidAPI USPTO) for active marks
2. Score every hit: max(phonetic similarity, edit similarity)
3. Compare Nice classes against the classes the business needs
4. Flag conflicts, find blocking ones, derive the risk level
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import quote

import httpx

from .config import Settings, get_settings
from .errors import UpstreamError, UpstreamNotConfigured
from .policy import BaseChecker, FailurePolicy
from .retry import RetryConfig, DEFAULT_RETRY_CONFIG, with_retry
from .schemas import TrademarkConflict, TrademarkResult
from .similarity import normalized_similarity, phonetic_similarity

logger = logging.getLogger(__name__)

RAPIDAPI_HOST = "uspto-trademark.p.rapidapi.com"

# Similarity thresholds
CONFLICT_THRESHOLD = 0.7            # flagged regardless of class
CLASS_CONFLICT_THRESHOLD = 0.5      # flagged only with class overlap
BLOCKING_THRESHOLD = 0.85           # blocking when classes overlap too

BLOCKING_PENALTY = 50
CONFLICT_PENALTY = 25


@dataclass
class TrademarkRecord:
    """One registered mark returned by the records API"""
    mark_text: str
    serial_number: str = ""
    status: str = "unknown"
    class_codes: List[int] = field(default_factory=list)


def extract_class_numbers(code: Optional[str]) -> List[int]:
    """'009, 042;035' -> [9, 42, 35]; anything that is not an integer is dropped."""
    if not code:
        return []
    numbers = []
    for part in re.split(r'[,;\s]+', str(code)):
        part = part.strip()
        if not part:
            continue
        try:
            numbers.append(int(part))
        except ValueError:
            continue
    return numbers


def parse_rapidapi_items(data: dict) -> List[TrademarkRecord]:
    records = []
    for item in data.get("items") or []:
        records.append(TrademarkRecord(
            mark_text=item.get("keyword") or "",
            serial_number=item.get("serialnumber") or "",
            status=item.get("status_label") or item.get("status_code") or "unknown",
            class_codes=extract_class_numbers(item.get("code")),
        ))
    return records


def is_conflict(similarity: float, class_overlap: bool) -> bool:
    return similarity > CONFLICT_THRESHOLD or (similarity > CLASS_CONFLICT_THRESHOLD and class_overlap)


def is_blocking(conflict: TrademarkConflict) -> bool:
    return conflict.similarity_score > BLOCKING_THRESHOLD and conflict.overlapping_classes


def find_conflicts(
    name: str,
    nice_classes: Iterable[int],
    records: Iterable[TrademarkRecord],
) -> List[TrademarkConflict]:
    """Conflicting records, most similar first."""
    applicable = set(nice_classes)
    conflicts = []

    for record in records:
        phonetic = phonetic_similarity(name, record.mark_text)
        visual = normalized_similarity(name, record.mark_text)
        similarity = max(phonetic, visual)
        class_overlap = bool(applicable & set(record.class_codes))

        if is_conflict(similarity, class_overlap):
            conflicts.append(TrademarkConflict(
                registered_name=record.mark_text,
                serial_number=record.serial_number,
                status=record.status,
                similarity_score=min(1.0, similarity),
                overlapping_classes=class_overlap,
                class_numbers=record.class_codes,
            ))

    conflicts.sort(key=lambda c: c.similarity_score, reverse=True)
    return conflicts


def build_trademark_result(conflicts: List[TrademarkConflict]) -> TrademarkResult:
    blocking = [c for c in conflicts if is_blocking(c)]

    if blocking:
        risk_level = "high"
    elif conflicts:
        risk_level = "medium"
    else:
        risk_level = "low"

    score = 100 - BLOCKING_PENALTY * len(blocking) - CONFLICT_PENALTY * (len(conflicts) - len(blocking))
    return TrademarkResult(
        passed=not blocking,
        score=max(0, min(100, score)),
        conflicts=conflicts,
        risk_level=risk_level,
    )


class RapidApiTrademarkProvider:
    """Active USPTO marks via the RapidAPI trademark search."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
        retry_config: RetryConfig = DEFAULT_RETRY_CONFIG,
    ):
        settings = settings or get_settings()
        self.api_key = api_key if api_key is not None else settings.rapidapi_key
        self.client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self.retry_config = retry_config

    async def search(self, name: str) -> List[TrademarkRecord]:
        if not self.api_key:
            raise UpstreamNotConfigured("RAPIDAPI_KEY is not set")

        url = f"https://{RAPIDAPI_HOST}/v1/trademarkSearch/{quote(name, safe='')}/active"

        async def call():
            res = await self.client.get(
                url,
                headers={"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": RAPIDAPI_HOST},
            )
            if res.status_code >= 400:
                raise UpstreamError(f"RapidAPI USPTO error: {res.status_code}", status=res.status_code)
            return res.json()

        data = await with_retry(call, self.retry_config)
        return parse_rapidapi_items(data)

    async def aclose(self) -> None:
        await self.client.aclose()


class TrademarkChecker(BaseChecker):
    failure_policy = FailurePolicy.FAIL_OPEN
    step = "trademark"

    def __init__(self, provider: RapidApiTrademarkProvider):
        self.provider = provider

    async def check(self, name: str, nice_classes: Optional[List[int]] = None) -> TrademarkResult:
        return await self.run(name, nice_classes or [])

    async def _check(self, name: str, nice_classes: List[int]) -> TrademarkResult:
        records = await self.provider.search(name)
        result = build_trademark_result(find_conflicts(name, nice_classes, records))
        logger.info(
            f"Trademark research for '{name}': {len(records)} marks, "
            f"{len(result.conflicts)} conflicts, risk {result.risk_level}"
        )
        return result

    def _fallback(self, name: str, error: Exception, nice_classes: List[int]) -> TrademarkResult:
        return TrademarkResult(passed=True, score=100, conflicts=[], risk_level="low", unverified=True)
