from __future__ import annotations

from typing import Any

import httpx


def depth_raw(start: int, end: int, **overrides: Any) -> dict[str, Any]:
    raw = {
        "startTime": str(start),
        "endTime": str(end),
        "assetDepth": "100",
        "assetPrice": "20.5",
        "assetPriceUSD": "60000.0",
        "liquidityUnits": "10",
        "luvi": "1.5",
        "membersCount": "3",
        "runeDepth": "200",
        "synthSupply": "5",
        "synthUnits": "6",
        "units": "16",
    }
    raw.update({k: str(v) for k, v in overrides.items()})
    return raw


def earnings_raw(start: int, end: int, pools: list[tuple[str, int]] | None = None) -> dict[str, Any]:
    return {
        "startTime": str(start),
        "endTime": str(end),
        "liquidityFees": "10",
        "blockRewards": "20",
        "earnings": "30",
        "bondingEarnings": "15",
        "liquidityEarnings": "15",
        "avgNodeCount": "100.0",
        "runePriceUSD": "5.0",
        "pools": [
            {
                "pool": name,
                "assetLiquidityFees": "1",
                "runeLiquidityFees": "2",
                "totalLiquidityFeesRune": "3",
                "saverEarning": "0",
                "rewards": "4",
                "earnings": str(amount),
            }
            for name, amount in (pools or [])
        ],
    }


def page(*intervals: dict[str, Any]) -> dict[str, Any]:
    return {"intervals": list(intervals), "meta": {}}


def status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://midgard.test/v2/history/depths/BTC.BTC")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class FakeMidgardClient:
    """Replays scripted pages/errors and records the ``from`` of every request."""

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[int] = []

    def get_history(self, definition, from_timestamp: int, count: int) -> dict[str, Any]:
        self.calls.append(from_timestamp)
        if not self.responses:
            return page()
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item
