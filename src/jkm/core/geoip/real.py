"""GeoIP lookup over HTTPS using httpx."""

import logging
from collections.abc import Sequence

import httpx

from jkm.core.geoip.abc import GeoLocator

logger = logging.getLogger(__name__)

GEOIP_ENDPOINTS = (
    "https://ipapi.co/country/",
    "https://ifconfig.co/country-iso",
)

DEFAULT_TIMEOUT_SECONDS = 2.0


class HttpGeoLocator(GeoLocator):
    """Tries each endpoint in order, accepting the first two-letter answer."""

    def __init__(
        self,
        endpoints: Sequence[str] = GEOIP_ENDPOINTS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoints = tuple(endpoints)
        self._timeout = timeout
        self._client = client

    def _get(self, url: str) -> str:
        if self._client is not None:
            response = self._client.get(url, timeout=self._timeout)
        else:
            response = httpx.get(url, timeout=self._timeout, follow_redirects=True)
        response.raise_for_status()
        return response.text

    def detect_country_code(self) -> str | None:
        for endpoint in self._endpoints:
            try:
                body = self._get(endpoint)
            except httpx.HTTPError as e:
                logger.debug("GeoIP lookup via %s failed: %s", endpoint, e)
                continue

            code = body.strip().upper()
            if len(code) == 2 and code.isalpha():
                logger.debug("GeoIP lookup via %s returned %s", endpoint, code)
                return code
            logger.debug("GeoIP lookup via %s returned unusable body %r", endpoint, body[:40])
        return None
