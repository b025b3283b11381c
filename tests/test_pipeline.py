import asyncio

import pytest

from brandclear.cancellation import CancellationToken
from brandclear.errors import OperationCancelled
from brandclear.pipeline import ValidationPipeline, split_outcomes
from brandclear.schemas import (
    AiScoreAdjustment,
    CheckConfig,
    DomainCheckConfig,
    TrademarkResult,
    ValidationConfig,
    WebSearchResult,
)
from brandclear.scoring import TrademarkabilityScorer
from brandclear.trademark_research import TrademarkChecker, TrademarkRecord

from conftest import (
    FakeLLM,
    StubDomainChecker,
    StubTrademarkChecker,
    StubWebChecker,
    blocking_trademark,
    build_pipeline,
    make_name,
)

CONFLICTED_WEB = WebSearchResult(
    passed=False,
    score=40,
    details="Zenvox Labs operates in the same market",
    similar_companies=["Zenvox Labs"],
)


def lenient_domain() -> ValidationConfig:
    return ValidationConfig(domain=DomainCheckConfig(enabled=True, can_fail=False))


class TestDisabledChecks:
    async def test_disabled_checks_are_skipped_and_never_fail(self):
        web = StubWebChecker(CONFLICTED_WEB)
        domain = StubDomainChecker(taken=lambda name: True)
        trademark = StubTrademarkChecker(blocking_trademark())
        pipeline = build_pipeline(web, domain, trademark)
        config = ValidationConfig(
            web_search=CheckConfig(enabled=False, can_fail=True),
            domain=DomainCheckConfig(enabled=False, can_fail=True),
            trademark=CheckConfig(enabled=False, can_fail=True),
        )

        outcome = await pipeline.validate(make_name("Zenvox"), [9], "software", config)

        assert outcome.type == "passed"
        validation = outcome.result.validation
        assert validation.web_search.skipped is True
        assert validation.web_search.details == "Skipped"
        assert validation.domain.skipped is True
        assert validation.domain.available is True
        assert validation.trademark.skipped is True
        assert validation.has_warnings is False
        assert web.calls == domain.calls == trademark.calls == []


class TestInformationalChecks:
    async def test_negative_trademark_without_can_fail_still_passes(self):
        trademark = StubTrademarkChecker(blocking_trademark())
        pipeline = build_pipeline(trademark=trademark)

        outcome = await pipeline.validate(make_name("Zenvox"), [9], "software")

        assert outcome.type == "passed"
        validation = outcome.result.validation
        assert validation.trademark.passed is True
        assert validation.trademark.risk_level == "high"
        assert validation.trademarkability_score.breakdown.trademark == 50
        assert validation.has_warnings is True

    async def test_negative_web_without_can_fail_still_passes(self):
        pipeline = build_pipeline(web=StubWebChecker(CONFLICTED_WEB))
        outcome = await pipeline.validate(make_name("Zenvox"), [9])
        assert outcome.type == "passed"
        assert outcome.result.validation.web_search.passed is True
        assert outcome.result.validation.trademarkability_score.breakdown.web_search == 40
        assert outcome.result.validation.has_warnings is True


class TestHardFailures:
    async def test_web_failure_stops_pipeline(self):
        domain = StubDomainChecker()
        pipeline = build_pipeline(web=StubWebChecker(CONFLICTED_WEB), domain=domain)
        config = ValidationConfig(web_search=CheckConfig(enabled=True, can_fail=True))

        outcome = await pipeline.validate(make_name("Zenvox"), [9], config=config)

        assert outcome.type == "failed"
        assert outcome.result.failure_step == "web_search"
        assert outcome.result.failure_reason == (
            "Web search found significant conflicts: Zenvox Labs operates in the same market"
        )
        assert outcome.result.validation.domain is None
        assert domain.calls == []

    async def test_domain_fails_by_default(self):
        trademark = StubTrademarkChecker()
        pipeline = build_pipeline(domain=StubDomainChecker(taken=lambda name: True), trademark=trademark)

        outcome = await pipeline.validate(make_name("Zenvox"), [9])

        assert outcome.type == "failed"
        assert outcome.result.failure_step == "domain"
        assert outcome.result.failure_reason == "Domain zenvox.com is not available"
        assert outcome.result.validation.web_search is not None
        assert trademark.calls == []

    async def test_trademark_failure_names_top_conflict(self):
        pipeline = build_pipeline(trademark=StubTrademarkChecker(blocking_trademark()))
        config = ValidationConfig(trademark=CheckConfig(enabled=True, can_fail=True))

        outcome = await pipeline.validate(make_name("Zenvox"), [9], config=config)

        assert outcome.type == "failed"
        assert outcome.result.failure_step == "trademark"
        assert outcome.result.failure_reason == 'Severe trademark conflict: "ZENVOKS" (similarity: 91%, class overlap)'

    async def test_trademark_failure_without_conflict_details(self):
        result = TrademarkResult(passed=False, score=0, conflicts=[], risk_level="high")
        pipeline = build_pipeline(trademark=StubTrademarkChecker(result))
        config = ValidationConfig(trademark=CheckConfig(enabled=True, can_fail=True))
        outcome = await pipeline.validate(make_name("Zenvox"), [9], config=config)
        assert outcome.result.failure_reason == "Severe trademark conflicts found"


class TestStepsAndCancellation:
    async def test_steps_reported_in_order(self):
        steps = []
        await build_pipeline().validate(make_name("Zenvox"), [9], on_step=steps.append)
        assert steps == ["web_search", "domain", "trademark", "scoring"]

    async def test_disabled_steps_not_reported(self):
        steps = []
        config = ValidationConfig(web_search=CheckConfig(enabled=False))
        await build_pipeline().validate(make_name("Zenvox"), [9], config=config, on_step=steps.append)
        assert steps == ["domain", "trademark", "scoring"]

    async def test_cancelled_token_stops_before_first_stage(self):
        web = StubWebChecker()
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            await build_pipeline(web=web).validate(make_name("Zenvox"), [9], cancel_token=token)
        assert web.calls == []

    async def test_cancel_between_stages(self):
        token = CancellationToken()
        domain = StubDomainChecker()

        def on_step(step):
            if step == "web_search":
                token.cancel()

        with pytest.raises(OperationCancelled):
            await build_pipeline(domain=domain).validate(
                make_name("Zenvox"), [9], on_step=on_step, cancel_token=token
            )
        assert domain.calls == []


class StaticTrademarkProvider:
    def __init__(self, records):
        self.records = records

    async def search(self, name):
        return self.records


async def test_zenvox_end_to_end():
    # "Zenvira" is roughly 0.57 similar to "Zenvox" and shares no class, so it is not a conflict
    trademark_checker = TrademarkChecker(StaticTrademarkProvider([
        TrademarkRecord("ZENVIRA", "98765432", "Live/Registered", [3]),
    ]))
    pipeline = ValidationPipeline(
        StubWebChecker(WebSearchResult(passed=True, score=100, details="No conflicts")),
        StubDomainChecker(taken=lambda name: True),
        trademark_checker,
        TrademarkabilityScorer(FakeLLM(responses={AiScoreAdjustment: {"adjustment": 0, "reasoning": ""}})),
    )

    outcome = await pipeline.validate(make_name("Zenvox", "fanciful"), [9, 42], "software", lenient_domain())

    assert outcome.type == "passed"
    validation = outcome.result.validation
    assert validation.overall_pass is True
    assert validation.has_warnings is True
    assert validation.domain.available is False
    assert validation.trademark.conflicts == []
    score = validation.trademarkability_score
    assert score.breakdown.distinctiveness == 95
    assert score.breakdown.conflict_risk == 100
    assert score.breakdown.registrability >= 85
    assert score.grade in ("A", "B")


class TestBatches:
    NAMES = ["Zenvox", "Quorvane", "Lumora", "Takenly", "Brivio"]

    def pipeline(self):
        return build_pipeline(domain=StubDomainChecker(taken=lambda name: name.startswith("T")))

    async def test_sequential_batch_reports_progress(self, preference_summary):
        events = []
        outcomes = await self.pipeline().validate_batch(
            [make_name(n) for n in self.NAMES], preference_summary, on_progress=events.append
        )

        passed, failed = split_outcomes(outcomes)
        assert [p.generated.name for p in passed] == ["Zenvox", "Quorvane", "Lumora", "Brivio"]
        assert [f.generated.name for f in failed] == ["Takenly"]

        final = events[-1]
        assert final.current_step == "complete"
        assert final.processed_count == 5
        assert final.passed_count == 4
        assert final.failed_count == 1
        assert {"web_search", "domain", "trademark", "scoring"} <= {e.current_step for e in events}

    async def test_concurrent_matches_sequential(self, preference_summary):
        names = [make_name(n) for n in self.NAMES]
        sequential = await self.pipeline().validate_batch(names, preference_summary)
        concurrent = await self.pipeline().validate_concurrently(names, preference_summary, concurrency=2)

        assert [(o.type, o.result.generated.name) for o in concurrent] == \
            [(o.type, o.result.generated.name) for o in sequential]

    async def test_concurrency_is_bounded(self, preference_summary):
        state = {"active": 0, "peak": 0}

        class SlowWebChecker(StubWebChecker):
            async def check(self, name, industry=""):
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                await asyncio.sleep(0.01)
                state["active"] -= 1
                return self.result

        pipeline = build_pipeline(web=SlowWebChecker())
        await pipeline.validate_concurrently([make_name(n) for n in self.NAMES], preference_summary, concurrency=2)
        assert state["peak"] == 2

    async def test_concurrency_must_be_positive(self, preference_summary):
        with pytest.raises(ValueError):
            await self.pipeline().validate_concurrently([], preference_summary, concurrency=0)
