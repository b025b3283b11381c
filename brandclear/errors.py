"""Exception types shared across the clearance pipeline."""
from typing import Optional


class BrandclearError(Exception):
    """Base class for every error raised by brandclear."""


class UpstreamError(BrandclearError):
    """An external API answered with a non-success status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UpstreamNotConfigured(BrandclearError):
    """Credentials for an external API are missing."""


class LLMResponseError(BrandclearError):
    """The language model returned output that does not match the requested shape."""


class GenerationError(BrandclearError):
    """The initial name generation produced nothing; the run cannot start."""


class OperationCancelled(BrandclearError):
    """A cancellation token was triggered at a suspension point."""


class ReplacementInProgress(BrandclearError):
    """A row-level replacement is already running for this run."""
