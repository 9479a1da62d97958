import asyncio

import httpx
import pytest

from metasearch.contracts.meta_search_v1 import ProviderId, ResultSource, SearchResultItem
from metasearch.search.providers import (
    BraveAdapter,
    DuckDuckGoAdapter,
    GoogleAdapter,
    ProviderAdapter,
    WikipediaAdapter,
    build_default_providers,
)
from metasearch.search.providers.wikipedia import article_url
from metasearch.search.quota import QuotaLedger

WIKI_PAYLOAD = {
    "query": {
        "search": [
            {
                "title": "OpenAI",
                "pageid": 48795986,
                "size": 120000,
                "wordcount": 9000,
                "snippet": '<span class="searchmatch">OpenAI</span> is an AI research organization',
            },
            {
                "title": "OpenAI Five",
                "pageid": 57440231,
                "size": 30000,
                "wordcount": 2500,
                "snippet": "A <b>Dota 2</b> bot",
            },
        ]
    }
}


def _wiki_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def ledger() -> QuotaLedger:
    return QuotaLedger(path=None, limits={ProviderId.GOOGLE: 100})


class ExplodingAdapter(ProviderAdapter):
    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.BRAVE

    async def search(self, text: str) -> list[SearchResultItem]:
        raise RuntimeError("upstream 502")


@pytest.mark.asyncio
async def test_wikipedia_maps_hits_and_strips_html(ledger):
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=WIKI_PAYLOAD)

    async with _wiki_client(handler) as client:
        adapter = WikipediaAdapter(ledger, client=client, api_url="https://wiki.test/w/api.php", limit=5)
        results, outcome = await adapter.query("openai")

    assert seen["srsearch"] == "openai"
    assert seen["srlimit"] == "5"
    assert outcome.success is True
    assert outcome.count == 2
    assert results[0].snippet == "OpenAI is an AI research organization"
    assert results[1].snippet == "A Dota 2 bot"
    assert results[1].url == "https://en.wikipedia.org/wiki/OpenAI_Five"
    assert results[0].metadata == {"pageId": 48795986, "size": 120000, "wordCount": 9000}
    assert results[0].source == ResultSource.WIKIPEDIA
    assert ledger.snapshot()[ProviderId.WIKIPEDIA].used == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, text="unavailable"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"error": {"code": "badvalue"}}),
    ],
)
async def test_wikipedia_degrades_to_search_link(ledger, response):
    async with _wiki_client(lambda request: response) as client:
        adapter = WikipediaAdapter(ledger, client=client, api_url="https://wiki.test/w/api.php")
        results, outcome = await adapter.query("large language model")

    assert outcome.success is True
    assert outcome.count == 1
    assert outcome.error is None
    assert results[0].id == "wiki_fallback"
    assert results[0].url == "https://en.wikipedia.org/wiki/Special:Search?search=large%20language%20model"
    assert results[0].metadata["fallback"] is True
    # only real successes are counted
    assert ledger.snapshot()[ProviderId.WIKIPEDIA].used == 0


@pytest.mark.asyncio
async def test_wikipedia_degrades_on_network_error(ledger):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _wiki_client(handler) as client:
        results, outcome = await WikipediaAdapter(ledger, client=client).query("openai")

    assert outcome.success is True
    assert [r.id for r in results] == ["wiki_fallback"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "adapter_cls, provider, url_prefix",
    [
        (BraveAdapter, ProviderId.BRAVE, "https://search.brave.com/search?q="),
        (DuckDuckGoAdapter, ProviderId.DUCKDUCKGO, "https://duckduckgo.com/?q="),
    ],
)
async def test_link_through_providers_always_count_usage(ledger, adapter_cls, provider, url_prefix):
    adapter = adapter_cls(ledger)
    results, outcome = await adapter.query("rust vs go")

    assert outcome.success is True
    assert outcome.count == 1
    assert results[0].url == url_prefix + "rust%20vs%20go"
    assert results[0].source.value == provider.value
    assert results[0].metadata["fallback"] is True
    assert ledger.snapshot()[provider].used == 1


@pytest.mark.asyncio
async def test_google_consumes_quota_once(ledger):
    results, outcome = await GoogleAdapter(ledger).query("openai")

    assert outcome.success is True
    assert results[0].source == ResultSource.GOOGLE
    assert results[0].url == "https://www.google.com/search?q=openai"
    assert ledger.remaining(ProviderId.GOOGLE) == 99


@pytest.mark.asyncio
async def test_google_switches_to_bing_when_quota_spent():
    ledger = QuotaLedger(path=None, limits={ProviderId.GOOGLE: 1})
    ledger.consume(ProviderId.GOOGLE)

    adapter = GoogleAdapter(ledger)
    results, outcome = await adapter.query("openai")

    assert adapter.provider_id == ProviderId.GOOGLE
    assert outcome.success is True
    assert results[0].source == ResultSource.GOOGLE_FALLBACK
    assert results[0].url == "https://www.bing.com/search?q=openai"
    assert results[0].metadata["alternative"] == "bing"
    assert ledger.snapshot()[ProviderId.GOOGLE].used == 1


@pytest.mark.asyncio
async def test_google_concurrent_queries_never_exceed_quota():
    ledger = QuotaLedger(path=None, limits={ProviderId.GOOGLE: 3})
    adapter = GoogleAdapter(ledger)

    answers = await asyncio.gather(*(adapter.query(f"openai {i}") for i in range(8)))

    sources = [results[0].source for results, _ in answers]
    assert sources.count(ResultSource.GOOGLE) == 3
    assert sources.count(ResultSource.GOOGLE_FALLBACK) == 5
    assert ledger.snapshot()[ProviderId.GOOGLE].used == 3


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Rock 'n' Roll (album)", "https://en.wikipedia.org/wiki/Rock_'n'_Roll_(album)"),
        ("C++", "https://en.wikipedia.org/wiki/C%2B%2B"),
        ("AC/DC", "https://en.wikipedia.org/wiki/AC%2FDC"),
    ],
)
def test_article_url_keeps_the_same_safe_characters_as_query_links(title, expected):
    assert article_url(title) == expected


@pytest.mark.asyncio
async def test_adapter_failure_becomes_outcome():
    results, outcome = await ExplodingAdapter().query("openai")
    assert results == []
    assert outcome.success is False
    assert outcome.count == 0
    assert outcome.error == "upstream 502"


def test_default_registry_order(ledger):
    providers = build_default_providers(ledger)
    assert [p.provider_id for p in providers] == [
        ProviderId.WIKIPEDIA,
        ProviderId.DUCKDUCKGO,
        ProviderId.BRAVE,
        ProviderId.GOOGLE,
    ]
