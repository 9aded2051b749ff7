from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from villagemap.config import api_base_url, http_timeout_s
from villagemap.errors import QueryFailure
from villagemap.layers.decode import decode_records
from villagemap.layers.types import FeatureRecord
from villagemap.query.types import FeatureQuery


class HttpFeatureQuery(FeatureQuery):
    """
    Village API client.

    - GET /villages?state=&district=&subdistrict=  -> full filtered set
    - GET /villages/bounds?minLat=&maxLat=&minLng=&maxLng=&zoom=  -> villages in view

    Both answer `{"success": bool, "data": [...]}`. Timeouts are enforced by the
    underlying client, not by callers.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or api_base_url()).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_s if timeout_s is not None else http_timeout_s(),
            transport=transport,
        )

    async def __aenter__(self) -> "HttpFeatureQuery":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_by_filter(
        self,
        state: str | None = None,
        district: str | None = None,
        subdistrict: str | None = None,
    ) -> list[FeatureRecord]:
        params = {
            k: v
            for k, v in (("state", state), ("district", district), ("subdistrict", subdistrict))
            if v
        }
        return await self._get("/villages", params)

    async def fetch_by_bounds(
        self,
        min_lat: float,
        max_lat: float,
        min_lng: float,
        max_lng: float,
        zoom: float,
    ) -> list[FeatureRecord]:
        params = {
            "minLat": min_lat,
            "maxLat": max_lat,
            "minLng": min_lng,
            "maxLng": max_lng,
            "zoom": zoom,
        }
        return await self._get("/villages/bounds", params)

    async def _get(self, path: str, params: dict[str, Any]) -> list[FeatureRecord]:
        try:
            resp = await self._client.get(path, params=params)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as e:
            raise QueryFailure(e) from e
        except ValueError as e:
            raise QueryFailure(f"invalid JSON from {path}: {e}") from e

        records = decode_records(unwrap_envelope(payload, path))
        logger.debug(f"GET {path} -> {len(records)} villages")
        return records


def unwrap_envelope(payload: Any, path: str) -> list[Any]:
    if not isinstance(payload, dict):
        raise QueryFailure(f"unexpected response shape from {path}")
    if not payload.get("success"):
        message = payload.get("message") or payload.get("error") or "success=false"
        raise QueryFailure(f"{path}: {message}")
    data = payload.get("data")
    if not isinstance(data, list):
        raise QueryFailure(f"{path}: `data` is not a list")
    return data
