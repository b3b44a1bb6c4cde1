"""Driving distance via the Google Distance Matrix JSON API."""

from __future__ import annotations

import logging
import math

import httpx

from .base import DistanceLookup, DistanceResult

log = logging.getLogger("intake.collaborators.distance_matrix")

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"


def _place(postal: str) -> str:
    return f"{postal}, BC, Canada"


class GoogleDistanceMatrix(DistanceLookup):
    """DistanceLookup backed by the Distance Matrix API (driving, metric)."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def driving_distance_km(self, origin_postal: str, dest_postal: str) -> DistanceResult:
        if not self._api_key:
            return DistanceResult(ok=False, error="Missing GOOGLE_MAPS_API_KEY")

        params = {
            "origins": _place(origin_postal),
            "destinations": _place(dest_postal),
            "mode": "driving",
            "units": "metric",
            "key": self._api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(DISTANCE_MATRIX_URL, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            log.warning("Distance Matrix returned status %s", exc.response.status_code)
            return DistanceResult(ok=False, error=f"DistanceMatrix http={exc.response.status_code}")
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("Distance Matrix request failed: %s", exc)
            return DistanceResult(ok=False, error=f"DistanceMatrix request failed: {type(exc).__name__}")

        rows = data.get("rows") or [{}]
        elements = rows[0].get("elements") or [{}]
        element = elements[0]
        status = element.get("status") or "unknown"
        if status != "OK":
            return DistanceResult(ok=False, error=f"DistanceMatrix status={status}")

        meters = (element.get("distance") or {}).get("value")
        if not isinstance(meters, (int, float)) or isinstance(meters, bool):
            return DistanceResult(ok=False, error="No distance value")

        # half-up to one decimal
        return DistanceResult(ok=True, km=math.floor(meters / 100 + 0.5) / 10)
