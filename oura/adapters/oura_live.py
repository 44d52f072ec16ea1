"""Oura live client: fetches daily collections from the Oura V2 API.

One httpx.AsyncClient per call, bearer-token auth, fixed per-request
timeout. Failures surface as UpstreamError via fetch_json.
"""

from datetime import date
from typing import Any

import httpx

from oura.adapters.http_client import fetch_json
from shared.metrics import upstream_api_duration_seconds


class OuraLiveClient:
    """Live-mode client bound to one patient's access token."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.ouraring.com/v2",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Content-Type": "application/json",
            },
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _collection(self, collection: str, start_date: date, end_date: date) -> dict[str, Any]:
        params = {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()}
        async with self._client() as client:
            with upstream_api_duration_seconds.labels(collection=collection).time():
                return await fetch_json(
                    client, f"/usercollection/{collection}", params=params, collection=collection
                )

    async def get_daily_activity(self, start_date: date, end_date: date) -> dict[str, Any]:
        return await self._collection("daily_activity", start_date, end_date)

    async def get_daily_sleep(self, start_date: date, end_date: date) -> dict[str, Any]:
        return await self._collection("daily_sleep", start_date, end_date)

    async def get_daily_readiness(self, start_date: date, end_date: date) -> dict[str, Any]:
        return await self._collection("daily_readiness", start_date, end_date)

    async def get_heart_rate(self, start_date: date, end_date: date) -> dict[str, Any]:
        return await self._collection("heartrate", start_date, end_date)
