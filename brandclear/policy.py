"""
Upstream failure policy for clearance checkers.

Every checker declares how an unreachable dependency is treated:

- FAIL_OPEN: unknown counts as a pass (web presence, trademark search). A broken
  third party never blocks the pipeline; the result is marked unverified.
- FAIL_CLOSED: unknown counts as a fail (domain availability). The user is never
  told a domain is claimable when that was not confirmed.
"""
import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


class BaseChecker:
    """
    Runs ``_check`` and falls back to ``_fallback`` on any upstream error.

    Subclasses set ``failure_policy`` and ``step`` and implement both hooks.
    Cancellation (``asyncio.CancelledError``) is not an ``Exception`` and
    passes through untouched.
    """

    failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN
    step: str = ""

    async def run(self, name: str, *args: Any, **kwargs: Any):
        try:
            return await self._check(name, *args, **kwargs)
        except Exception as e:
            logger.warning(
                f"{self.step} check failed for '{name}' ({self.failure_policy.value}): {e}"
            )
            return self._fallback(name, e, *args, **kwargs)

    async def _check(self, name: str, *args: Any, **kwargs: Any):
        raise NotImplementedError

    def _fallback(self, name: str, error: Exception, *args: Any, **kwargs: Any):
        raise NotImplementedError
