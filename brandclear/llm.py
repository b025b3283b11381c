"""
LLM structured-completion service.

The pipeline only ever needs "send a prompt, get back JSON of a known shape".
`StructuredLLM` is that narrow seam; `AnthropicLLM` is the production
implementation and tests substitute fakes.
"""
import json
import logging
import re
from typing import Any, Optional, Protocol, Type, TypeVar

from anthropic import AsyncAnthropic
from pydantic import BaseModel, ValidationError

from .config import Settings, get_settings
from .errors import LLMResponseError, UpstreamNotConfigured
from .retry import RetryConfig, DEFAULT_RETRY_CONFIG, with_retry

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

JSON_SYSTEM_PROMPT = """You are a precise assistant that answers ONLY with a single JSON value.
Do not wrap the JSON in prose. Do not add comments. Use double quotes for all keys and strings."""


class StructuredLLM(Protocol):
    async def complete_json(self, prompt: str, schema_hint: Optional[dict] = None) -> Any:
        ...

    async def assess(self, prompt: str, schema: Type[M]) -> M:
        ...


def extract_json_block(content: str) -> str:
    """Pull the JSON payload out of a reply that may be wrapped in markdown fences."""
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0]
    elif "```" in content:
        parts = content.split("```")
        if len(parts) >= 2:
            content = parts[1]
            if content.startswith("json"):
                content = content[4:]
    return content.strip()


def clean_json_string(s: str) -> str:
    """Drop BOMs and control characters that break json.loads (tab, LF, CR are kept)."""
    s = s.replace('\ufeff', '')
    s = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f]', '', s)
    return s


def repair_json(s: str) -> str:
    """Fix the syntax slips LLMs make most often: trailing and doubled commas."""
    s = re.sub(r',(\s*[}\]])', r'\1', s)
    s = re.sub(r'\[\s*,', '[', s)
    s = re.sub(r',\s*,', ',', s)
    return s


def parse_llm_json(content: str) -> Any:
    content = extract_json_block(content)
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        logger.info("Direct JSON parsing failed, applying cleanup and repair...")

    repaired = repair_json(clean_json_string(content))
    try:
        return json.loads(repaired)
    except json.JSONDecodeError as je:
        start = max(0, je.pos - 100)
        end = min(len(repaired), je.pos + 100)
        logger.error(f"JSON Parse Error at position {je.pos}: {je.msg}")
        logger.error(f"Context around error: ...{repr(repaired[start:end])}...")
        raise LLMResponseError(f"LLM reply is not valid JSON: {je.msg}") from je


def validate_against(schema: Type[M], data: Any) -> M:
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise LLMResponseError(f"LLM reply does not match {schema.__name__}: {e}") from e


class AnthropicLLM:
    """Claude-backed implementation of `StructuredLLM`."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[AsyncAnthropic] = None,
        retry_config: RetryConfig = DEFAULT_RETRY_CONFIG,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self.retry_config = retry_config

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            if not self.settings.anthropic_api_key:
                raise UpstreamNotConfigured("ANTHROPIC_API_KEY is not set")
            self._client = AsyncAnthropic(
                api_key=self.settings.anthropic_api_key,
                max_retries=0,
                timeout=60.0,
            )
        return self._client

    async def _send(self, prompt: str, system: str) -> str:
        client = self.client

        async def call():
            return await client.messages.create(
                model=self.settings.llm_model,
                max_tokens=self.settings.llm_max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )

        response = await with_retry(call, self.retry_config)
        return "".join(
            getattr(block, "text", "") for block in response.content
        )

    async def complete_json(self, prompt: str, schema_hint: Optional[dict] = None) -> Any:
        system = JSON_SYSTEM_PROMPT
        if schema_hint:
            system += "\n\nThe JSON must conform to this JSON Schema:\n" + json.dumps(schema_hint, indent=2)
        content = await self._send(prompt, system)
        return parse_llm_json(content)

    async def assess(self, prompt: str, schema: Type[M]) -> M:
        data = await self.complete_json(prompt, schema.model_json_schema())
        return validate_against(schema, data)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
