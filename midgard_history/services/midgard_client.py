from __future__ import annotations

from typing import Any

import httpx

from midgard_history.core.config import settings
from midgard_history.services.series import SeriesDefinition


class MidgardClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        pool: str | None = None,
        interval: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.midgard_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.midgard_timeout
        self.pool = pool or settings.midgard_depth_pool
        self.interval = interval or settings.midgard_interval
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def path_for(self, definition: SeriesDefinition) -> str:
        return definition.upstream_path.format(pool=self.pool)

    def get_history(self, definition: SeriesDefinition, from_timestamp: int, count: int) -> dict[str, Any]:
        """Fetch one page of a history endpoint.

        Raises ``httpx.HTTPStatusError`` for non-2xx responses (429 included) and
        ``httpx.RequestError`` for transport failures; pacing and retries are the
        caller's job.
        """
        params = {"interval": self.interval, "from": from_timestamp, "count": count}
        with self._client() as client:
            resp = client.get(self.path_for(definition), params=params)
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected {definition.name.value} payload type: {type(data).__name__}")
        return data


midgard_client = MidgardClient()
