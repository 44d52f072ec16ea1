"""Data-source protocol for Oura usercollection endpoints.

Both the live client and the demo client implement this interface.
The fetcher depends only on the protocol, never on concrete clients.
"""

from datetime import date
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class OuraDataSource(Protocol):
    """Read-only access to one Oura account's daily collections.

    Every method returns the raw collection payload:
    {"data": [...records ordered by day...], "next_token": str | None}
    and raises UpstreamError on failure.
    """

    async def get_daily_activity(self, start_date: date, end_date: date) -> dict[str, Any]: ...

    async def get_daily_sleep(self, start_date: date, end_date: date) -> dict[str, Any]: ...

    async def get_daily_readiness(self, start_date: date, end_date: date) -> dict[str, Any]: ...

    async def get_heart_rate(self, start_date: date, end_date: date) -> dict[str, Any]: ...
