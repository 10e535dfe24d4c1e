"""Delivery radius check backed by a Nominatim-compatible geocoder"""

import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
import structlog

from bakery.config import settings

logger = structlog.get_logger()

EARTH_RADIUS_MILES = 3958.7613


@dataclass(frozen=True)
class DeliveryEligibility:
    """Outcome of a delivery check; ok=False means the address was unusable"""
    ok: bool
    eligible: bool = False
    distance_miles: Optional[float] = None
    error: Optional[str] = None


def haversine_miles(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    d_lat = lat2 - lat1
    d_lon = lon2 - lon1
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def normalize_address(address: str) -> str:
    return re.sub(r"\s+", " ", address.strip())


class DeliveryEligibilityChecker:
    """Geocodes an address and compares its distance to the delivery radius"""

    def __init__(
        self,
        origin: Tuple[float, float] = (settings.delivery_origin_lat, settings.delivery_origin_lon),
        max_distance_miles: float = settings.delivery_max_distance_miles,
        geocoder_url: str = settings.geocoder_url,
        contact_email: str = settings.geocoder_contact_email,
        timeout: float = settings.geocoder_timeout_seconds,
    ):
        self.origin = origin
        self.max_distance_miles = max_distance_miles
        self.geocoder_url = geocoder_url
        self.contact_email = contact_email
        self.timeout = timeout

    async def geocode(self, address: str) -> Optional[Tuple[float, float]]:
        params = {"format": "json", "limit": "1", "q": address}
        if self.contact_email:
            params["email"] = self.contact_email
        headers = {
            "User-Agent": f"BakeryDeliveryEligibility/1.0 ({self.contact_email or 'no-contact'})",
            "Accept-Language": "en",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.geocoder_url, params=params, headers=headers)
            response.raise_for_status()
            results = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoding failed", error=str(e))
            return None

        if not isinstance(results, list) or not results:
            return None
        try:
            return float(results[0]["lat"]), float(results[0]["lon"])
        except (KeyError, TypeError, ValueError):
            return None

    async def check(self, address: str) -> DeliveryEligibility:
        normalized = normalize_address(address)
        if len(normalized) < 5 or len(normalized) > 240:
            return DeliveryEligibility(ok=False, error="Please enter a full delivery address.")

        coords = await self.geocode(normalized)
        if coords is None:
            return DeliveryEligibility(
                ok=False,
                error="We couldn't verify that delivery address. "
                "Try including the street, city, and ZIP code.",
            )

        distance = round(haversine_miles(self.origin, coords), 2)
        return DeliveryEligibility(
            ok=True,
            eligible=distance <= self.max_distance_miles,
            distance_miles=distance,
        )
