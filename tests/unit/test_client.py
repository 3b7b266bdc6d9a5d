import aiohttp
import pytest

from floorwatch.errors import FetchError
from floorwatch.ingest.client import MarketplaceClient
from tests.helpers.fake_http import FakeResponse, FakeSession

URL = "https://api.store.test/c/x/stats"


def _client(script):
    c = MarketplaceClient()
    c._session = FakeSession(script)
    return c


@pytest.mark.asyncio
async def test_get_json_decodes_body():
    c = _client([FakeResponse(200, {"stats": {"floor_price": 1.5}})])
    assert await c.get_json(URL) == {"stats": {"floor_price": 1.5}}
    assert c._session.gets[0][0] == URL

@pytest.mark.asyncio
async def test_http_error_status_is_fetch_error():
    c = _client([FakeResponse(503, "maintenance")])
    with pytest.raises(FetchError) as ei:
        await c.get_json(URL)
    assert ei.value.status == 503
    assert "maintenance" in str(ei.value)

@pytest.mark.asyncio
async def test_invalid_json_is_fetch_error():
    c = _client([FakeResponse(200, "<html>cloudflare</html>")])
    with pytest.raises(FetchError, match="invalid json"):
        await c.get_json(URL)

@pytest.mark.asyncio
async def test_transport_error_is_fetch_error():
    c = _client([aiohttp.ClientConnectionError("refused")])
    with pytest.raises(FetchError) as ei:
        await c.get_json(URL)
    assert ei.value.status is None
    assert ei.value.url == URL

@pytest.mark.asyncio
async def test_requires_start():
    with pytest.raises(RuntimeError):
        await MarketplaceClient().get_json(URL)

@pytest.mark.asyncio
async def test_stop_closes_session():
    c = _client([])
    session = c._session
    await c.stop()
    assert session.closed and c._session is None
