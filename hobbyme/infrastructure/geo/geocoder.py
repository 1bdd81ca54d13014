"""Address geocoding backed by geopy."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from geopy.exc import GeocoderServiceError
from geopy.geocoders import Nominatim, OpenCage

from hobbyme.core.entities import Coordinates
from hobbyme.utils.logger import logger

SUPPORTED_PROVIDERS: tuple[str, ...] = ("nominatim", "opencage")


@dataclass
class GeopyGeocoder:
    """Translate free-text addresses such as ``"Liverpool, UK"`` into coordinates.

    OpenCage is used when an API key is configured, matching the hosted
    geocoding service of the web client; Nominatim is the keyless fallback.
    """

    provider: str = "nominatim"
    api_key: Optional[str] = None
    user_agent: str = "hobbyme"
    timeout: int = 5

    def __post_init__(self) -> None:
        provider = (self.provider or "").strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unsupported geocoding provider: {self.provider!r}")
        if provider == "opencage" and not self.api_key:
            raise ValueError("The OpenCage provider requires an API key.")

        self.provider = provider
        self._geolocator = self._build_geolocator()

    def _build_geolocator(self) -> Any:
        if self.provider == "opencage":
            return OpenCage(api_key=self.api_key, user_agent=self.user_agent, timeout=self.timeout)
        return Nominatim(user_agent=self.user_agent, timeout=self.timeout)

    def geocode(self, address: str) -> Optional[Coordinates]:
        query = self._normalise_address(address)
        if not query:
            return None

        logger.debug("Geocoding address: {}", query)
        try:
            location = self._geolocator.geocode(query)
        except (GeocoderServiceError, ValueError) as error:
            logger.warning("Geocoding failed for {}: {}", query, error)
            return None

        if location is None:
            logger.info("No coordinates found for {}", query)
            return None

        logger.debug("Resolved {} to ({}, {})", query, location.latitude, location.longitude)
        return Coordinates(latitude=location.latitude, longitude=location.longitude)

    @staticmethod
    def _normalise_address(address: Optional[str]) -> str:
        return re.sub(r"\s+", " ", address or "").strip(" ,")


__all__ = ["GeopyGeocoder", "SUPPORTED_PROVIDERS"]
