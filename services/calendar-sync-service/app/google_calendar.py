"""
HTTP client for the Google OAuth token endpoint and Calendar API.

Provides an async client used by the sync service to refresh access
tokens and list calendar events. Uses a persistent httpx client with
connection pooling; all failures are mapped to service exceptions.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import structlog

from app.config import settings
from app.exceptions import CalendarApiError, TokenRefreshError
from app.metrics import GoogleApiTimer, record_token_refresh
from app.models import TokenGrant

logger = structlog.get_logger(__name__)


def format_rfc3339(value: datetime) -> str:
    """Format an aware datetime as a UTC RFC 3339 timestamp ending in Z."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class GoogleCalendarClient:
    """
    Client for Google OAuth token refresh and Calendar v3 listing calls.

    Attributes:
        client_id: OAuth client id
        client_secret: OAuth client secret
        token_url: Token endpoint used for refresh_token grants
        api_base: Calendar API base URL
        calendar_id: Calendar whose events are listed
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        token_url: Optional[str] = None,
        api_base: Optional[str] = None,
        calendar_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.token_url = token_url or settings.GOOGLE_TOKEN_URL
        self.api_base = (api_base or settings.GOOGLE_CALENDAR_API_BASE).rstrip("/")
        self.calendar_id = calendar_id or settings.GOOGLE_CALENDAR_ID
        self.timeout = timeout or settings.GOOGLE_REQUEST_TIMEOUT
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the persistent HTTP client with connection pooling.

        Returns:
            Configured httpx.AsyncClient instance
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=httpx.Limits(
                    max_keepalive_connections=10,
                    max_connections=50,
                    keepalive_expiry=30.0,
                ),
                transport=self._transport,
            )
            logger.debug("Created new Google HTTP client")
        return self._client

    async def close(self) -> None:
        """
        Close the HTTP client and release connections.

        Should be called during application shutdown.
        """
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed Google HTTP client")

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        """
        Exchange a refresh token for a new access token.

        Args:
            refresh_token: Long-lived Google refresh token

        Returns:
            TokenGrant with the new access token and its lifetime

        Raises:
            TokenRefreshError: If the endpoint fails or returns no access token
        """
        client = await self._get_client()
        form = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        try:
            with GoogleApiTimer("token"):
                response = await client.post(
                    self.token_url,
                    data=form,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            logger.error("Token refresh request failed", error=str(e))
            record_token_refresh(False)
            raise TokenRefreshError(details=str(e)) from e

        logger.info("Token refresh response received", status=response.status_code)

        if not response.is_success:
            logger.error(
                "Token refresh rejected",
                status=response.status_code,
                body=response.text,
            )
            record_token_refresh(False)
            raise TokenRefreshError(details=response.text)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            logger.error("Token refresh response is not a JSON object", body=response.text)
            record_token_refresh(False)
            raise TokenRefreshError(details=response.text)

        access_token = payload.get("access_token")
        if not access_token:
            logger.error(
                "No access token in refresh response",
                fields=sorted(payload.keys()),
            )
            record_token_refresh(False)
            raise TokenRefreshError()

        record_token_refresh(True)
        return TokenGrant(
            access_token=access_token,
            expires_in=payload.get("expires_in") or settings.DEFAULT_TOKEN_LIFETIME_SECONDS,
        )

    async def list_events(
        self,
        access_token: str,
        time_min: datetime,
        time_max: datetime,
        max_results: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        List single (expanded) events of the configured calendar in a window.

        Follows nextPageToken until no token is returned or max_pages
        pages have been read.

        Args:
            access_token: Valid Google access token
            time_min: Window start (inclusive)
            time_max: Window end (exclusive)
            max_results: Page size requested from Google
            max_pages: Maximum number of pages to read

        Returns:
            Dict with "items", "summary" and "timeZone" of the calendar

        Raises:
            CalendarApiError: If any page request fails
        """
        client = await self._get_client()
        url = f"{self.api_base}/calendars/{self.calendar_id}/events"
        max_pages = max_pages or settings.SYNC_MAX_PAGES
        params: Dict[str, Any] = {
            "timeMin": format_rfc3339(time_min),
            "timeMax": format_rfc3339(time_max),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": max_results or settings.SYNC_MAX_RESULTS,
        }

        items: List[Dict[str, Any]] = []
        summary = None
        time_zone = None

        for page in range(max_pages):
            data = await self._get_json(client, url, access_token, params, "events")
            page_items = data.get("items") or []
            items.extend(page_items)
            summary = summary or data.get("summary")
            time_zone = time_zone or data.get("timeZone")

            logger.info(
                "Calendar events page fetched",
                page=page + 1,
                page_items=len(page_items),
                has_next_page=bool(data.get("nextPageToken")),
            )

            next_token = data.get("nextPageToken")
            if not next_token:
                break
            params = {**params, "pageToken": next_token}
        else:
            logger.warning("Stopped following event pages", max_pages=max_pages)

        return {"items": items, "summary": summary, "timeZone": time_zone}

    async def list_calendars(self, access_token: str) -> List[Dict[str, Any]]:
        """
        List calendars visible to the user's Google account.

        Args:
            access_token: Valid Google access token

        Returns:
            Calendar list entries with id, summary and primary flag

        Raises:
            CalendarApiError: If the request fails
        """
        client = await self._get_client()
        url = f"{self.api_base}/users/me/calendarList"
        data = await self._get_json(client, url, access_token, None, "calendarList")
        return [
            {
                "id": entry.get("id"),
                "summary": entry.get("summary"),
                "primary": bool(entry.get("primary", False)),
            }
            for entry in data.get("items") or []
        ]

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        access_token: str,
        params: Optional[Dict[str, Any]],
        endpoint: str,
    ) -> Dict[str, Any]:
        try:
            with GoogleApiTimer(endpoint):
                response = await client.get(
                    url,
                    params=params,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Accept": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            logger.error("Calendar API request failed", endpoint=endpoint, error=str(e))
            raise CalendarApiError(details=str(e)) from e

        if not response.is_success:
            details = _error_body(response)
            logger.error(
                "Calendar API error",
                endpoint=endpoint,
                status=response.status_code,
                details=details,
            )
            raise CalendarApiError(details=details, api_status=response.status_code)

        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            logger.error("Calendar API response is not a JSON object", endpoint=endpoint)
            raise CalendarApiError(details=response.text)

        return data
