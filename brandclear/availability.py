"""
Domain Availability Checker
Two tiers per TLD: RDAP registry lookup first, GoDaddy inventory API as fallback
(and as the pricing source when RDAP already says the domain is free).
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import httpx

from .config import Settings, get_settings
from .errors import UpstreamError, UpstreamNotConfigured
from .policy import BaseChecker, FailurePolicy
from .retry import RetryConfig, DEFAULT_RETRY_CONFIG, with_retry
from .schemas import DomainResult, DomainTldResult

logger = logging.getLogger(__name__)

RDAP_BASE_URL = "https://rdap.org/domain"
GODADDY_API_URL = "https://api.godaddy.com/v1/domains/available"
DEFAULT_TLDS = [".com"]
MICROS_PER_UNIT = 1_000_000


def sanitize_domain_name(name: str) -> str:
    return re.sub(r'[^a-z0-9]', '', name.lower())


def format_price(price_micros: Optional[int]) -> Optional[str]:
    if not price_micros:
        return None
    return f"${price_micros / MICROS_PER_UNIT:.2f}"


@dataclass
class InventoryQuote:
    available: bool
    price_micros: Optional[int] = None
    currency: Optional[str] = None


class RdapRegistry:
    """Authoritative existence check. 404 = free, 200 = registered, anything else = no verdict."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.client = client or httpx.AsyncClient(
            timeout=settings.rdap_timeout_seconds,
            follow_redirects=True,
        )

    async def lookup(self, domain: str) -> Optional[bool]:
        """Return True if the domain exists, False if it is free, None when RDAP gave no verdict."""
        try:
            response = await self.client.get(f"{RDAP_BASE_URL}/{domain}")
        except httpx.HTTPError as e:
            logger.warning(f"RDAP lookup failed for {domain}: {e}")
            return None

        if response.status_code == 404:
            return False
        if response.status_code == 200:
            return True
        logger.info(f"RDAP returned {response.status_code} for {domain}, no verdict")
        return None

    async def aclose(self) -> None:
        await self.client.aclose()


class GoDaddyInventory:
    """Availability and pricing from the GoDaddy domains API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
        retry_config: RetryConfig = DEFAULT_RETRY_CONFIG,
    ):
        settings = settings or get_settings()
        self.api_key = api_key if api_key is not None else settings.godaddy_api_key
        self.api_secret = api_secret if api_secret is not None else settings.godaddy_api_secret
        self.client = client or httpx.AsyncClient(timeout=settings.rdap_timeout_seconds)
        self.retry_config = retry_config

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    async def _fetch(self, domain: str) -> dict:
        res = await self.client.get(
            GODADDY_API_URL,
            params={"domain": domain},
            headers={"Authorization": f"sso-key {self.api_key}:{self.api_secret}"},
        )
        if res.status_code >= 400:
            raise UpstreamError(f"GoDaddy API error: {res.status_code}", status=res.status_code)
        return res.json()

    async def check_availability(self, domain: str) -> InventoryQuote:
        if not self.configured:
            raise UpstreamNotConfigured("GODADDY_API_KEY / GODADDY_API_SECRET are not set")

        data = await with_retry(lambda: self._fetch(domain), self.retry_config)
        return InventoryQuote(
            available=data.get("available") is True,
            price_micros=data.get("price"),
            currency=data.get("currency"),
        )

    async def get_pricing(self, domain: str) -> Tuple[Optional[str], Optional[str]]:
        """Best-effort price lookup, single attempt; (None, None) when unknown."""
        if not self.configured:
            return None, None
        try:
            data = await self._fetch(domain)
        except (httpx.HTTPError, UpstreamError, ValueError) as e:
            logger.info(f"GoDaddy pricing unavailable for {domain}: {e}")
            return None, None
        return format_price(data.get("price")), data.get("currency")

    async def aclose(self) -> None:
        await self.client.aclose()


class DomainChecker(BaseChecker):
    """Checks one or more TLDs for a name. Unknown is reported as not available."""

    failure_policy = FailurePolicy.FAIL_CLOSED
    step = "domain"

    def __init__(self, registry: RdapRegistry, inventory: GoDaddyInventory):
        self.registry = registry
        self.inventory = inventory

    async def check(self, name: str, tlds: Optional[List[str]] = None) -> DomainResult:
        return await self.run(name, tlds or DEFAULT_TLDS)

    async def check_tld(self, sanitized: str, tld: str) -> DomainTldResult:
        domain = f"{sanitized}{tld}"

        # Tier 1: RDAP
        exists = await self.registry.lookup(domain)
        if exists is False:
            price, currency = await self.inventory.get_pricing(domain)
            return DomainTldResult(
                tld=tld, domain=domain, available=True,
                price=price, currency=currency, source="rdap",
            )
        if exists is True:
            return DomainTldResult(tld=tld, domain=domain, available=False, source="rdap")

        # Tier 2: GoDaddy
        if not self.inventory.configured:
            return DomainTldResult(tld=tld, domain=domain, available=False, source="unknown")
        try:
            quote = await self.inventory.check_availability(domain)
        except Exception as e:
            logger.warning(f"GoDaddy availability failed for {domain}: {e}")
            return DomainTldResult(tld=tld, domain=domain, available=False, source="unknown")

        return DomainTldResult(
            tld=tld,
            domain=domain,
            available=quote.available,
            price=format_price(quote.price_micros) if quote.available else None,
            currency=quote.currency if quote.available else None,
            source="godaddy",
        )

    async def _check(self, name: str, tlds: List[str]) -> DomainResult:
        sanitized = sanitize_domain_name(name)
        if not sanitized:
            raise ValueError(f"'{name}' has no characters usable in a domain")

        results = await asyncio.gather(*[self.check_tld(sanitized, tld) for tld in tlds])
        return aggregate_domain_results(list(results))

    def _fallback(self, name: str, error: Exception, tlds: List[str]) -> DomainResult:
        sanitized = sanitize_domain_name(name)
        return DomainResult(
            available=False,
            domain=f"{sanitized}{tlds[0]}" if sanitized else "",
            source="unknown",
        )


def aggregate_domain_results(results: List[DomainTldResult]) -> DomainResult:
    """First available TLD represents the set; otherwise the first one checked."""
    if not results:
        return DomainResult(available=False, source="unknown")

    representative = next((r for r in results if r.available), results[0])
    return DomainResult(
        available=representative.available,
        domain=representative.domain,
        price=representative.price,
        currency=representative.currency,
        source=representative.source,
        tld_results=results if len(results) > 1 else None,
    )
