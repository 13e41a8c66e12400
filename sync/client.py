"""FreshRSS client for the Google Reader compatible API."""
import asyncio
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from models.freshrss import StreamPage, Subscription, SubscriptionList
from shared.config import settings
from shared.exceptions import AuthenticationError, FetchError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/greader.php"
AUTH_LINE_PREFIX = "Auth="


class FreshRssClient:
    """
    Client for a FreshRSS instance.

    Authentication uses the ClientLogin flow: credentials are posted once,
    the ``Auth=`` token from the response is cached on the instance, and every
    later request sends it as ``Authorization: GoogleLogin auth=<token>``.
    There is no refresh; build a new client to log in again.
    """

    def __init__(
        self,
        base_url: str = None,
        user: str = None,
        api_password: str = None,
        access_client_id: Optional[str] = None,
        access_client_secret: Optional[str] = None,
        timeout: int = None,
        page_size: int = None
    ):
        self.base_url = (base_url or settings.freshrss_url).rstrip("/")
        self.user = user if user is not None else settings.freshrss_user
        self.api_password = api_password if api_password is not None else settings.freshrss_api_password
        self.timeout = timeout or settings.request_timeout
        self.page_size = page_size or settings.sync_page_size
        self._auth_token: Optional[str] = None

        access_client_id = access_client_id or settings.cf_access_client_id
        access_client_secret = access_client_secret or settings.cf_access_client_secret
        self.access_headers: Dict[str, str] = {}
        if access_client_id and access_client_secret:
            self.access_headers = {
                "CF-Access-Client-Id": access_client_id,
                "CF-Access-Client-Secret": access_client_secret,
            }

    @property
    def is_authenticated(self) -> bool:
        return self._auth_token is not None

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=self.access_headers
        )

    async def authenticate(self) -> str:
        """
        Log in and return the auth token.

        Returns the cached token when one exists.
        """
        if self._auth_token is not None:
            return self._auth_token

        url = f"{self.base_url}{API_PREFIX}/accounts/ClientLogin"
        form = {"Email": self.user, "Passwd": self.api_password}

        try:
            async with self._session() as session:
                async with session.post(url, data=form) as response:
                    body = await response.text()
                    if response.status >= 400:
                        raise AuthenticationError(
                            f"FreshRSS login failed: HTTP {response.status}"
                        )
        except asyncio.TimeoutError:
            raise AuthenticationError(f"FreshRSS login timed out after {self.timeout} seconds")
        except aiohttp.ClientError as e:
            raise AuthenticationError(f"FreshRSS login failed: {e}") from e

        token = self._parse_auth_token(body)
        if not token:
            raise AuthenticationError("FreshRSS login failed: no Auth token in response")

        self._auth_token = token
        logger.info(f"Authenticated with FreshRSS at {self.base_url}")
        return token

    @staticmethod
    def _parse_auth_token(body: str) -> Optional[str]:
        """Pull the token out of a ``SID=...\\nLSID=...\\nAuth=...`` body."""
        for line in body.splitlines():
            line = line.strip()
            if line.startswith(AUTH_LINE_PREFIX):
                return line[len(AUTH_LINE_PREFIX):] or None
        return None

    async def _headers(self) -> Dict[str, str]:
        token = await self.authenticate()
        return {
            "Authorization": f"GoogleLogin auth={token}",
            "Content-Type": "application/json",
        }

    async def _get_json(self, url: str, params: Dict[str, str]) -> Any:
        headers = await self._headers()

        try:
            async with self._session() as session:
                async with session.get(url, params=params, headers=headers) as response:
                    if response.status >= 400:
                        raise FetchError(
                            f"FreshRSS API error: HTTP {response.status}",
                            status=response.status
                        )
                    return await response.json(content_type=None)
        except asyncio.TimeoutError:
            raise FetchError(f"FreshRSS request timed out after {self.timeout} seconds")
        except aiohttp.ClientError as e:
            raise FetchError(f"FreshRSS request failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"FreshRSS returned invalid JSON: {e}") from e

    async def list_subscriptions(self) -> List[Subscription]:
        """Return every subscribed feed."""
        url = f"{self.base_url}{API_PREFIX}/reader/api/0/subscription/list"
        data = await self._get_json(url, {"output": "json"})

        try:
            return SubscriptionList.model_validate(data).subscriptions
        except PydanticValidationError as e:
            raise FetchError(f"Unexpected subscription list payload: {e}") from e

    async def list_items(self, feed_id: str, since: Optional[int] = None) -> StreamPage:
        """
        Return one page of items for a feed.

        Args:
            feed_id: FreshRSS subscription id, e.g. ``feed/12``.
            since: Only items newer than this epoch timestamp (seconds).
        """
        url = f"{self.base_url}{API_PREFIX}/reader/api/0/stream/contents/{quote(feed_id, safe='')}"
        params = {"output": "json", "n": str(self.page_size)}
        if since:
            params["ot"] = str(since)

        data = await self._get_json(url, params)

        try:
            return StreamPage.model_validate(data)
        except PydanticValidationError as e:
            raise FetchError(f"Unexpected stream payload for {feed_id}: {e}") from e
