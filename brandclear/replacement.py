"""
Generation run with replacement rounds.

Bulk mode generates N names, validates them one by one, then asks the generator
for exactly as many replacements as there were failures, up to `max_rounds`
times. Row mode swaps a single status row for a fresh candidate without touching
the other rows' positions.
"""
import logging
from typing import Callable, List, Optional

from .cancellation import CancellationToken
from .errors import GenerationError, OperationCancelled, ReplacementInProgress
from .generator import NameGenerator
from .pipeline import Outcome, ProgressCallback, ValidationPipeline
from .schemas import (
    FailedName,
    FailureFeedback,
    GeneratedName,
    NameStatus,
    PreferenceSummary,
    RunResult,
    ValidatedName,
    ValidationConfig,
    ValidationProgress,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 3
ROW_REPLACEMENT_REASON = "User requested replacement"

StatusCallback = Callable[[int, NameStatus], None]


class GenerationRun:
    def __init__(
        self,
        generator: NameGenerator,
        pipeline: ValidationPipeline,
        preference_summary: PreferenceSummary,
        insights: str = "",
        config: Optional[ValidationConfig] = None,
        exclusion_names: Optional[List[str]] = None,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        on_progress: Optional[ProgressCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        self.generator = generator
        self.pipeline = pipeline
        self.preference_summary = preference_summary
        self.insights = insights
        self.config = config or ValidationConfig()
        self.exclusion_names = list(exclusion_names or [])
        self.max_rounds = max_rounds
        self.on_progress = on_progress
        self.on_status = on_status

        self._passed: List[ValidatedName] = []
        self._failed: List[FailedName] = []
        self._outstanding: List[FailedName] = []
        self._statuses: List[NameStatus] = []
        self._seen: List[str] = []
        self._rounds = 0
        self._total = 0

        self._token = CancellationToken()
        self._row_token: Optional[CancellationToken] = None
        self._row_busy = False
        self._running = False

    # ---- snapshots ----

    @property
    def passed(self) -> List[ValidatedName]:
        return list(self._passed)

    @property
    def failed(self) -> List[FailedName]:
        return list(self._failed)

    @property
    def statuses(self) -> List[NameStatus]:
        return list(self._statuses)

    @property
    def rounds(self) -> int:
        return self._rounds

    @property
    def excluded_names(self) -> List[str]:
        """Everything the generator must not suggest again."""
        return self.exclusion_names + [n for n in self._seen if n not in self.exclusion_names]

    # ---- cancellation ----

    def cancel(self) -> None:
        self._token.cancel()

    def cancel_row(self) -> None:
        if self._row_token is not None:
            self._row_token.cancel()

    # ---- internals ----

    def _set_status(self, index: int, **update) -> None:
        self._statuses[index] = self._statuses[index].model_copy(update=update)
        if self.on_status is not None:
            self.on_status(index, self._statuses[index])

    def _report(self, name: str, step: str) -> None:
        if self.on_progress is None:
            return
        self.on_progress(ValidationProgress(
            current_name=name,
            current_step=step,
            total_names=self._total,
            processed_count=len(self._passed) + len(self._failed),
            passed_count=len(self._passed),
            failed_count=len(self._failed),
            replacement_round=self._rounds,
        ))

    def _add_rows(self, names: List[GeneratedName]) -> int:
        start = len(self._statuses)
        for generated in names:
            self._statuses.append(NameStatus(name=generated.name))
            self._seen.append(generated.name)
        self._total += len(names)
        return start

    async def _validate_row(
        self,
        index: int,
        generated: GeneratedName,
        token: CancellationToken,
    ) -> Outcome:
        self._set_status(index, name=generated.name, step="web_search", status="validating", reason=None)

        def on_step(step: str):
            self._set_status(index, step=step)
            self._report(generated.name, step)

        try:
            outcome = await self.pipeline.validate(
                generated,
                self.preference_summary.class_numbers(),
                self.preference_summary.industry,
                self.config,
                on_step=on_step,
                cancel_token=token,
            )
        except OperationCancelled:
            self._set_status(index, step="pending", status="pending")
            raise

        if outcome.type == "passed":
            self._set_status(index, step="done", status="passed")
        else:
            self._set_status(index, step="done", status="failed", reason=outcome.result.failure_reason)
        return outcome

    async def _validate_all(self, names: List[GeneratedName], start: int) -> List[FailedName]:
        """Validate sequentially; successes join `passed`, failures are returned."""
        new_failed = []
        for offset, generated in enumerate(names):
            self._token.raise_if_cancelled()
            outcome = await self._validate_row(start + offset, generated, self._token)
            if outcome.type == "passed":
                self._passed.append(outcome.result)
            else:
                new_failed.append(outcome.result)
                self._failed.append(outcome.result)
            self._report(generated.name, "complete")
        return new_failed

    def _result(self, cancelled: bool = False) -> RunResult:
        return RunResult(
            passed=self.passed,
            failed=self.failed,
            outstanding=list(self._outstanding),
            statuses=self.statuses,
            rounds=self._rounds,
            cancelled=cancelled,
        )

    # ---- bulk mode ----

    async def run(self, count: int) -> RunResult:
        """
        Generate `count` names and validate them, then run replacement rounds.

        Only a failed initial generation raises (GenerationError); everything
        else, including cancellation, ends in a RunResult.
        """
        self._running = True
        try:
            self._token.raise_if_cancelled()
            try:
                names = await self.generator.generate(
                    self.preference_summary,
                    self.insights,
                    count,
                    excluded_names=list(self.exclusion_names),
                )
            except Exception as e:
                logger.error(f"Initial name generation failed: {e}")
                raise GenerationError(f"Name generation failed: {e}") from e
            if not names:
                raise GenerationError("Name generation returned no candidates")

            self._token.raise_if_cancelled()
            start = self._add_rows(names)
            self._outstanding = await self._validate_all(names, start)

            while self._outstanding and self._rounds < self.max_rounds:
                self._token.raise_if_cancelled()
                self._rounds += 1
                self._report("", "replacing")

                feedback = [
                    FailureFeedback(name=f.generated.name, reason=f.failure_reason)
                    for f in self._outstanding
                ]
                try:
                    replacements = await self.generator.generate(
                        self.preference_summary,
                        self.insights,
                        len(self._outstanding),
                        is_replacement=True,
                        failed_feedback=feedback,
                        excluded_names=self.excluded_names,
                    )
                except Exception as e:
                    logger.error(f"Replacement generation failed in round {self._rounds}: {e}")
                    replacements = []

                if not replacements:
                    logger.info(f"Round {self._rounds} produced no replacements, stopping")
                    break

                self._token.raise_if_cancelled()
                start = self._add_rows(replacements)
                self._outstanding = await self._validate_all(replacements, start)

        except OperationCancelled:
            logger.info(f"Run cancelled with {len(self._passed)} passed, {len(self._failed)} failed")
            return self._result(cancelled=True)
        finally:
            self._running = False

        logger.info(
            f"Run finished after {self._rounds} replacement round(s): "
            f"{len(self._passed)} passed, {len(self._outstanding)} outstanding"
        )
        self._report("", "done")
        return self._result()

    # ---- row mode ----

    async def replace_row(self, index: int) -> Optional[Outcome]:
        """
        Replace the name in status row `index` with one fresh candidate.

        Returns the new outcome, or None when nothing was swapped (no candidate,
        cancelled, or an error). Only one row replacement may run at a time, and
        none while a bulk run is active.
        """
        if self._row_busy:
            raise ReplacementInProgress("Another row replacement is already running")
        if self._running:
            raise ReplacementInProgress("A generation run is still in progress")
        if not 0 <= index < len(self._statuses):
            raise IndexError(f"No status row at index {index}")

        self._row_busy = True
        token = CancellationToken()
        self._row_token = token
        original = self._statuses[index]

        try:
            self._set_status(index, step="replacing", status="replacing")

            replacements = await self.generator.generate(
                self.preference_summary,
                self.insights,
                1,
                is_replacement=True,
                failed_feedback=[FailureFeedback(name=original.name, reason=ROW_REPLACEMENT_REASON)],
                excluded_names=self.excluded_names,
            )
            if token.cancelled or not replacements:
                self._restore_row(index, original)
                return None

            replacement = replacements[0]
            self._seen.append(replacement.name)
            outcome = await self._validate_row(index, replacement, token)
            if token.cancelled:
                self._restore_row(index, original)
                return None

            self._passed = [v for v in self._passed if v.generated.name != original.name]
            self._failed = [f for f in self._failed if f.generated.name != original.name]
            self._outstanding = [f for f in self._outstanding if f.generated.name != original.name]
            if outcome.type == "passed":
                self._passed.append(outcome.result)
            else:
                self._failed.append(outcome.result)
                self._outstanding.append(outcome.result)

            logger.info(f"Row {index}: replaced '{original.name}' with '{replacement.name}' ({outcome.type})")
            return outcome

        except OperationCancelled:
            self._restore_row(index, original)
            return None
        except Exception as e:
            logger.error(f"Row replacement failed for '{original.name}': {e}")
            self._set_status(index, step="done", status="failed", reason="Replacement failed")
            return None
        finally:
            self._row_busy = False
            self._row_token = None

    def _restore_row(self, index: int, original: NameStatus) -> None:
        self._statuses[index] = original
        if self.on_status is not None:
            self.on_status(index, original)
