import httpx
import pytest

from brandclear.availability import (
    DomainChecker,
    GoDaddyInventory,
    RdapRegistry,
    aggregate_domain_results,
    format_price,
    sanitize_domain_name,
)
from brandclear.config import Settings
from brandclear.errors import UpstreamNotConfigured
from brandclear.retry import RetryConfig
from brandclear.schemas import DomainTldResult

NO_RETRY = RetryConfig(max_retries=0)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def rdap(statuses: dict) -> RdapRegistry:
    """RDAP stub keyed by domain; unknown domains answer 404."""

    def handler(request: httpx.Request):
        domain = request.url.path.rsplit("/", 1)[-1]
        status = statuses.get(domain, 404)
        if isinstance(status, Exception):
            raise status
        return httpx.Response(status)

    return RdapRegistry(client=mock_client(handler), settings=Settings())


def godaddy(payloads: dict, api_key="key", api_secret="secret") -> GoDaddyInventory:
    def handler(request: httpx.Request):
        domain = request.url.params["domain"]
        payload = payloads.get(domain)
        if payload is None:
            return httpx.Response(500)
        return httpx.Response(200, json=payload)

    return GoDaddyInventory(
        api_key=api_key,
        api_secret=api_secret,
        client=mock_client(handler),
        settings=Settings(),
        retry_config=NO_RETRY,
    )


class TestHelpers:
    def test_sanitize(self):
        assert sanitize_domain_name("Zen-Vox Labs!") == "zenvoxlabs"

    def test_format_price(self):
        assert format_price(12_000_000) == "$12.00"
        assert format_price(9_990_000) == "$9.99"
        assert format_price(None) is None
        assert format_price(0) is None


class TestRdapRegistry:
    async def test_verdicts(self):
        registry = rdap({"taken.com": 200, "free.com": 404, "odd.com": 429})
        assert await registry.lookup("taken.com") is True
        assert await registry.lookup("free.com") is False
        assert await registry.lookup("odd.com") is None

    async def test_network_error_is_no_verdict(self):
        registry = rdap({"down.com": httpx.ConnectError("refused")})
        assert await registry.lookup("down.com") is None


class TestGoDaddyInventory:
    async def test_availability_with_price(self):
        inventory = godaddy({"zenvox.io": {"available": True, "price": 12_000_000, "currency": "USD"}})
        quote = await inventory.check_availability("zenvox.io")
        assert quote.available is True
        assert quote.price_micros == 12_000_000

    async def test_requires_credentials(self):
        inventory = godaddy({}, api_key="", api_secret="")
        assert inventory.configured is False
        with pytest.raises(UpstreamNotConfigured):
            await inventory.check_availability("zenvox.com")

    async def test_pricing_is_best_effort(self):
        inventory = godaddy({})
        assert await inventory.get_pricing("zenvox.com") == (None, None)


class TestDomainChecker:
    async def test_rdap_free_gets_godaddy_pricing(self):
        checker = DomainChecker(
            rdap({"zenvox.com": 404}),
            godaddy({"zenvox.com": {"available": False, "price": 11_990_000, "currency": "USD"}}),
        )
        result = await checker.check("Zenvox")
        # RDAP's verdict wins over the inventory's availability flag
        assert result.available is True
        assert result.domain == "zenvox.com"
        assert result.price == "$11.99"
        assert result.source == "rdap"
        assert result.tld_results is None

    async def test_rdap_taken(self):
        checker = DomainChecker(rdap({"zenvox.com": 200}), godaddy({}))
        result = await checker.check("Zenvox")
        assert result.available is False
        assert result.source == "rdap"

    async def test_falls_back_to_godaddy(self):
        checker = DomainChecker(
            rdap({"zenvox.com": 503}),
            godaddy({"zenvox.com": {"available": True, "price": 12_000_000, "currency": "USD"}}),
        )
        result = await checker.check("Zenvox")
        assert result.available is True
        assert result.source == "godaddy"
        assert result.price == "$12.00"
        assert result.currency == "USD"

    async def test_no_verdict_without_credentials_is_unavailable(self):
        checker = DomainChecker(rdap({"zenvox.com": 503}), godaddy({}, api_key="", api_secret=""))
        result = await checker.check("Zenvox")
        assert result.available is False
        assert result.source == "unknown"

    async def test_godaddy_error_is_unavailable(self):
        checker = DomainChecker(rdap({"zenvox.com": 503}), godaddy({}))
        result = await checker.check("Zenvox")
        assert result.available is False
        assert result.source == "unknown"

    async def test_multiple_tlds_in_order(self):
        checker = DomainChecker(rdap({"zenvox.com": 200, "zenvox.io": 404}), godaddy({}))
        result = await checker.check("Zenvox", [".com", ".io"])
        assert result.available is True
        assert result.domain == "zenvox.io"
        assert [r.tld for r in result.tld_results] == [".com", ".io"]

    async def test_unusable_name_fails_closed(self):
        checker = DomainChecker(rdap({}), godaddy({}))
        result = await checker.check("!!!")
        assert result.available is False
        assert result.source == "unknown"


class TestAggregation:
    def test_first_available_represents(self):
        results = [
            DomainTldResult(tld=".com", domain="zenvox.com", available=False, source="rdap"),
            DomainTldResult(tld=".io", domain="zenvox.io", available=True, price="$12.00", source="rdap"),
        ]
        aggregate = aggregate_domain_results(results)
        assert aggregate.available is True
        assert aggregate.domain == "zenvox.io"
        assert aggregate.price == "$12.00"
        assert len(aggregate.tld_results) == 2

    def test_none_available_uses_first(self):
        results = [
            DomainTldResult(tld=".com", domain="zenvox.com", available=False, source="rdap"),
            DomainTldResult(tld=".io", domain="zenvox.io", available=False, source="godaddy"),
        ]
        aggregate = aggregate_domain_results(results)
        assert aggregate.available is False
        assert aggregate.domain == "zenvox.com"
        assert aggregate.source == "rdap"

    def test_single_result_has_no_breakdown(self):
        results = [DomainTldResult(tld=".com", domain="zenvox.com", available=True, source="rdap")]
        assert aggregate_domain_results(results).tld_results is None
