"""FreshRSS client tests against a local FreshRSS double."""
import pytest

from shared.exceptions import AuthenticationError, FetchError
from sync.client import FreshRssClient


class TestAuthenticate:
    """Tests for the ClientLogin flow."""

    @pytest.mark.asyncio
    async def test_returns_token_from_auth_line(self, make_client, freshrss):
        client = make_client()
        token = await client.authenticate()

        assert token == freshrss.TOKEN
        assert client.is_authenticated

    @pytest.mark.asyncio
    async def test_token_is_cached_per_instance(self, make_client, freshrss):
        client = make_client()
        await client.authenticate()
        await client.authenticate()
        await client.list_subscriptions()

        assert freshrss.login_calls == 1

        await make_client().authenticate()
        assert freshrss.login_calls == 2

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, make_client):
        client = make_client(api_password="wrong")

        with pytest.raises(AuthenticationError, match="HTTP 401"):
            await client.authenticate()
        assert not client.is_authenticated

    @pytest.mark.asyncio
    async def test_response_without_auth_line(self, make_client, freshrss):
        freshrss.login_body = "SID=abc\nLSID=null\n"

        with pytest.raises(AuthenticationError, match="no Auth token"):
            await make_client().authenticate()

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        client = FreshRssClient(base_url="http://127.0.0.1:1", user="u", api_password="p", timeout=2)

        with pytest.raises(AuthenticationError):
            await client.authenticate()

    def test_parse_auth_token(self):
        body = "SID=admin/x\nLSID=null\nAuth=admin/token123\n"
        assert FreshRssClient._parse_auth_token(body) == "admin/token123"
        assert FreshRssClient._parse_auth_token("Error=BadAuthentication") is None
        assert FreshRssClient._parse_auth_token("Auth=") is None


class TestListSubscriptions:
    """Tests for the subscription list."""

    @pytest.mark.asyncio
    async def test_lists_subscriptions(self, make_client):
        subscriptions = await make_client().list_subscriptions()

        assert len(subscriptions) == 1
        assert subscriptions[0].id == "feed/1"
        assert subscriptions[0].title == "Tech Blog"
        assert subscriptions[0].categories[0].label == "Tech"

    @pytest.mark.asyncio
    async def test_sends_auth_and_access_headers(self, make_client, freshrss):
        client = make_client(access_client_id="client-id", access_client_secret="client-secret")
        await client.list_subscriptions()

        headers = freshrss.requests[-1].headers
        assert headers["Authorization"] == f"GoogleLogin auth={freshrss.TOKEN}"
        assert headers["Content-Type"] == "application/json"
        assert headers["CF-Access-Client-Id"] == "client-id"
        assert headers["CF-Access-Client-Secret"] == "client-secret"

    def test_access_headers_need_both_values(self, make_client):
        client = make_client(access_client_id="client-id", access_client_secret=None)
        assert client.access_headers == {}

    @pytest.mark.asyncio
    async def test_rejected_token_raises_fetch_error(self, make_client):
        client = make_client()
        client._auth_token = "stale"

        with pytest.raises(FetchError) as exc_info:
            await client.list_subscriptions()
        assert exc_info.value.status == 401


class TestListItems:
    """Tests for stream contents."""

    @pytest.mark.asyncio
    async def test_lists_items_for_feed(self, make_client):
        page = await make_client().list_items("feed/1")

        assert len(page.items) == 2
        assert page.items[0]["title"] == "New Framework Released"

    @pytest.mark.asyncio
    async def test_since_filters_items(self, make_client):
        page = await make_client().list_items("feed/1", since=9999999999)
        assert page.items == []

    @pytest.mark.asyncio
    async def test_page_size_is_sent(self, make_client, freshrss):
        page = await make_client(page_size=1).list_items("feed/1")

        assert len(page.items) == 1
        assert freshrss.requests[-1].query["n"] == "1"
        assert freshrss.requests[-1].query["output"] == "json"

    @pytest.mark.asyncio
    async def test_server_error_raises_fetch_error(self, make_client, freshrss):
        freshrss.failing_streams.add("feed/1")

        with pytest.raises(FetchError) as exc_info:
            await make_client().list_items("feed/1")
        assert exc_info.value.status == 500
