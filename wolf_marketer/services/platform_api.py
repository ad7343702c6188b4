from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

import httpx

from wolf_marketer.config import settings
from wolf_marketer.db.models import Platform
from wolf_marketer.services.errors import UpstreamError

logger = logging.getLogger(__name__)


class PlatformApiError(UpstreamError):
    pass


class PlatformConnector(Protocol):
    def test_connection(self) -> bool:
        ...


class CredentialPresenceConnector:
    """Fallback for platforms without a configured health endpoint."""

    def __init__(self, *, api_key: Optional[str]) -> None:
        self.api_key = api_key

    def test_connection(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


class HttpPlatformConnector:
    def __init__(
        self,
        *,
        platform_name: str,
        health_url: str,
        api_key: str,
        api_secret: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        if not health_url.strip():
            raise ValueError("health_url is required")
        self.platform_name = platform_name
        self.health_url = health_url.strip()
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout_seconds = float(timeout_seconds or settings.PLATFORM_API_TIMEOUT_SECONDS)

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"}
        if self.api_secret:
            headers["X-Api-Secret"] = self.api_secret
        return headers

    def test_connection(self) -> bool:
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                resp = client.get(self.health_url, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.exception(
                "platform_api.request_failed",
                extra={"platform": self.platform_name, "url": self.health_url},
            )
            raise PlatformApiError(f"{self.platform_name} API request failed: {exc}") from exc

        if resp.status_code >= 500:
            raise PlatformApiError(
                f"{self.platform_name} API is unavailable (status {resp.status_code})",
            )
        if resp.status_code >= 400:
            logger.warning(
                "platform_api.credentials_rejected",
                extra={"platform": self.platform_name, "status_code": resp.status_code},
            )
            return False
        return True


ConnectorFactory = Callable[[Platform], PlatformConnector]


def _health_url_for(platform_name: str) -> Optional[str]:
    wanted = platform_name.strip().lower()
    for name, url in settings.PLATFORM_HEALTH_URLS.items():
        if name.strip().lower() == wanted:
            return url
    return None


def build_platform_connector(platform: Platform) -> PlatformConnector:
    health_url = _health_url_for(platform.name)
    if not health_url or not platform.api_key:
        return CredentialPresenceConnector(api_key=platform.api_key)
    return HttpPlatformConnector(
        platform_name=platform.name,
        health_url=health_url,
        api_key=platform.api_key,
        api_secret=platform.api_secret,
    )


def get_connector_factory() -> ConnectorFactory:
    return build_platform_connector
