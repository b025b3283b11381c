"""
Validation Pipeline
===================
Runs one candidate name through the clearance stages, strictly in order:

    pending -> web_search -> domain -> trademark -> scoring -> passed | failed

Per stage the ValidationConfig decides what happens:
- disabled: a skipped pass result is synthesized, the checker is never called
- enabled, negative, can_fail: the candidate fails here, later stages never run
- enabled, negative, not can_fail: informational only, the result is kept (and
  feeds the score) but counted as passed
Scoring always runs for candidates that survive.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .availability import DomainChecker
from .cancellation import CancellationToken
from .schemas import (
    DomainResult,
    FailedName,
    FailedOutcome,
    GeneratedName,
    PartialValidation,
    PassedOutcome,
    PreferenceSummary,
    TrademarkResult,
    ValidatedName,
    ValidationConfig,
    ValidationProgress,
    ValidationResult,
    WebSearchResult,
)
from .scoring import TrademarkabilityScorer
from .trademark_research import TrademarkChecker
from .visibility import WebPresenceChecker

logger = logging.getLogger(__name__)

STAGES = ["web_search", "domain", "trademark", "scoring"]
DEFAULT_CONCURRENCY = 3

Outcome = Union[PassedOutcome, FailedOutcome]
StepCallback = Callable[[str], None]
ProgressCallback = Callable[[ValidationProgress], None]


def skipped_web_search() -> WebSearchResult:
    return WebSearchResult(
        passed=True,
        score=100,
        details="Skipped",
        similar_companies=[],
        ai_assessment="Skipped",
        skipped=True,
    )


def skipped_domain() -> DomainResult:
    return DomainResult(available=True, domain="", source="unknown", skipped=True)


def skipped_trademark() -> TrademarkResult:
    return TrademarkResult(passed=True, score=100, conflicts=[], risk_level="low", skipped=True)


def trademark_failure_reason(trademark: TrademarkResult) -> str:
    if not trademark.conflicts:
        return "Severe trademark conflicts found"
    top = trademark.conflicts[0]
    return (
        f'Severe trademark conflict: "{top.registered_name}" '
        f'(similarity: {top.similarity_score * 100:.0f}%, class overlap)'
    )


def compute_has_warnings(web_search: WebSearchResult, domain: DomainResult, trademark: TrademarkResult) -> bool:
    """A survivor still gets a warning when any check that actually ran came back less than ideal."""
    return (
        (not web_search.skipped and web_search.score < 100)
        or (not trademark.skipped and trademark.risk_level != "low")
        or (not domain.skipped and not domain.available)
    )


def split_outcomes(outcomes: Sequence[Outcome]) -> Tuple[List[ValidatedName], List[FailedName]]:
    passed = [o.result for o in outcomes if o.type == "passed"]
    failed = [o.result for o in outcomes if o.type == "failed"]
    return passed, failed


class ValidationPipeline:
    def __init__(
        self,
        web_checker: WebPresenceChecker,
        domain_checker: DomainChecker,
        trademark_checker: TrademarkChecker,
        scorer: TrademarkabilityScorer,
    ):
        self.web_checker = web_checker
        self.domain_checker = domain_checker
        self.trademark_checker = trademark_checker
        self.scorer = scorer

    @staticmethod
    def _enter(stage: str, on_step: Optional[StepCallback], cancel_token: Optional[CancellationToken]) -> None:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        if on_step is not None:
            on_step(stage)

    async def validate(
        self,
        generated: GeneratedName,
        nice_classes: Sequence[int],
        industry: str = "",
        config: Optional[ValidationConfig] = None,
        on_step: Optional[StepCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Outcome:
        """Validate one name. Raises OperationCancelled if the token fires between stages."""
        config = config or ValidationConfig()
        name = generated.name

        # Stage 1: web presence
        if config.web_search.enabled:
            self._enter("web_search", on_step, cancel_token)
            web_search = await self.web_checker.check(name, industry)
            if not web_search.passed:
                if config.web_search.can_fail:
                    return self._failed(
                        generated,
                        PartialValidation(web_search=web_search),
                        "web_search",
                        f"Web search found significant conflicts: {web_search.details}",
                    )
                web_search = web_search.model_copy(update={"passed": True})
        else:
            web_search = skipped_web_search()

        # Stage 2: domain
        if config.domain.enabled:
            self._enter("domain", on_step, cancel_token)
            domain = await self.domain_checker.check(name, config.domain.tlds)
            if not domain.available and config.domain.can_fail:
                return self._failed(
                    generated,
                    PartialValidation(web_search=web_search, domain=domain),
                    "domain",
                    f"Domain {domain.domain} is not available",
                )
        else:
            domain = skipped_domain()

        # Stage 3: trademark
        if config.trademark.enabled:
            self._enter("trademark", on_step, cancel_token)
            trademark = await self.trademark_checker.check(name, list(nice_classes))
            if not trademark.passed:
                if config.trademark.can_fail:
                    return self._failed(
                        generated,
                        PartialValidation(web_search=web_search, domain=domain, trademark=trademark),
                        "trademark",
                        trademark_failure_reason(trademark),
                    )
                trademark = trademark.model_copy(update={"passed": True})
        else:
            trademark = skipped_trademark()

        # Stage 4: scoring, always runs for survivors
        self._enter("scoring", on_step, cancel_token)
        score = await self.scorer.score(
            name,
            generated.distinctiveness_category,
            trademark,
            web_search,
            domain.available,
        )

        validation = ValidationResult(
            name=name,
            web_search=web_search,
            domain=domain,
            trademark=trademark,
            trademarkability_score=score,
            overall_pass=True,
            has_warnings=compute_has_warnings(web_search, domain, trademark),
        )
        logger.info(f"'{name}' passed validation (score {score.overall}, grade {score.grade})")
        return PassedOutcome(result=ValidatedName(generated=generated, validation=validation))

    @staticmethod
    def _failed(generated: GeneratedName, partial: PartialValidation, step: str, reason: str) -> FailedOutcome:
        logger.info(f"'{generated.name}' failed at {step}: {reason}")
        return FailedOutcome(result=FailedName(
            generated=generated,
            validation=partial,
            failure_step=step,
            failure_reason=reason,
        ))

    async def validate_batch(
        self,
        names: Sequence[GeneratedName],
        preference_summary: PreferenceSummary,
        config: Optional[ValidationConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[Outcome]:
        """One name at a time, in input order, reporting progress before every stage."""
        nice_classes = preference_summary.class_numbers()
        outcomes: List[Outcome] = []
        passed_count = 0
        failed_count = 0

        def report(name: str, step: str, processed: int):
            if on_progress is not None:
                on_progress(ValidationProgress(
                    current_name=name,
                    current_step=step,
                    total_names=len(names),
                    processed_count=processed,
                    passed_count=passed_count,
                    failed_count=failed_count,
                ))

        for i, generated in enumerate(names):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            report(generated.name, "starting", i)

            outcome = await self.validate(
                generated,
                nice_classes,
                preference_summary.industry,
                config,
                on_step=lambda step, n=generated.name, idx=i: report(n, step, idx),
                cancel_token=cancel_token,
            )
            outcomes.append(outcome)
            if outcome.type == "passed":
                passed_count += 1
            else:
                failed_count += 1

            report(generated.name, "complete", i + 1)

        return outcomes

    async def validate_concurrently(
        self,
        names: Sequence[GeneratedName],
        preference_summary: PreferenceSummary,
        config: Optional[ValidationConfig] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[Outcome]:
        """Several names at once (stages within a name stay sequential); outcomes come back in input order."""
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        nice_classes = preference_summary.class_numbers()
        semaphore = asyncio.Semaphore(concurrency)

        async def worker(generated: GeneratedName) -> Outcome:
            async with semaphore:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                return await self.validate(
                    generated,
                    nice_classes,
                    preference_summary.industry,
                    config,
                    cancel_token=cancel_token,
                )

        return list(await asyncio.gather(*[worker(g) for g in names]))
