"""Fake GeoLocator returning a fixed country code."""

from jkm.core.geoip.abc import GeoLocator


class FakeGeoLocator(GeoLocator):
    """Returns the configured country code and counts lookups.

    Examples:
        >>> locator = FakeGeoLocator(country_code="CN")
        >>> locator.detect_country_code()
        'CN'
        >>> locator.lookup_count
        1
    """

    def __init__(self, *, country_code: str | None) -> None:
        self._country_code = country_code
        self._lookup_count = 0

    def detect_country_code(self) -> str | None:
        self._lookup_count += 1
        return self._country_code

    @property
    def lookup_count(self) -> int:
        """Number of detect_country_code() calls. For test assertions only."""
        return self._lookup_count
