"""Country-code lookup interface used for mirror selection."""

from abc import ABC, abstractmethod


class GeoLocator(ABC):
    """Abstract interface for resolving the caller's country.

    Real implementations call public GeoIP endpoints. Fakes return a fixed
    code so mirror selection can be tested deterministically.
    """

    @abstractmethod
    def detect_country_code(self) -> str | None:
        """Return an upper-case ISO 3166 alpha-2 code, or None if unknown.

        Implementations must not raise on network failure.
        """
        ...
