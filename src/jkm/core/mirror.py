"""PyPI mirror selection by geolocation, cached per session.

Resolution order:

1. Explicit override (any value other than "auto")
2. Cached result from an earlier call on this selector
3. GeoIP country lookup matched against MIRROR_RULES
4. None (use the default index)
"""

import logging
from dataclasses import dataclass

from jkm.core.geoip.abc import GeoLocator
from jkm.core.settings import AUTO_MIRROR

logger = logging.getLogger(__name__)

USER_SETTING_LABEL = "User setting"


@dataclass(frozen=True)
class MirrorInfo:
    url: str
    label: str


@dataclass(frozen=True)
class MirrorRule:
    label: str
    url: str
    countries: frozenset[str]


MIRROR_RULES: tuple[MirrorRule, ...] = (
    MirrorRule(
        label="Tsinghua (CN)",
        url="https://pypi.tuna.tsinghua.edu.cn/simple",
        countries=frozenset({"CN"}),
    ),
    MirrorRule(
        label="NUS (SE Asia)",
        url="https://mirror.nus.edu.sg/pypi/simple",
        countries=frozenset({"SG", "MY", "ID", "PH", "VN", "TH", "KH", "LA", "MM", "BN"}),
    ),
    MirrorRule(
        label="FAU (EU)",
        url="https://ftp.fau.de/python/pypi/simple",
        countries=frozenset(
            {
                "DE", "FR", "NL", "BE", "CH", "AT", "PL", "CZ", "HU", "IT",
                "ES", "PT", "SE", "NO", "DK", "FI", "GB", "UK", "IE",
            }
        ),
    ),
)


def resolve_mirror_for_country(
    country_code: str | None, rules: tuple[MirrorRule, ...] = MIRROR_RULES
) -> MirrorInfo | None:
    """First rule whose country set contains the code wins."""
    if not country_code:
        return None
    for rule in rules:
        if country_code in rule.countries:
            return MirrorInfo(url=rule.url, label=rule.label)
    return None


class _Unset:
    """Marks a cache that has not been populated yet (None is a valid cached value)."""


_UNSET = _Unset()


class MirrorSelector:
    """Chooses a package index mirror and remembers the answer.

    One instance lives for the CLI session and is handed to the provisioner,
    so the GeoIP lookup runs at most once per session.
    """

    def __init__(
        self,
        geo_locator: GeoLocator,
        override: str = AUTO_MIRROR,
        rules: tuple[MirrorRule, ...] = MIRROR_RULES,
    ) -> None:
        self._geo_locator = geo_locator
        self._override = override
        self._rules = rules
        self._cached: MirrorInfo | None | _Unset = _UNSET

    def get_preferred_mirror(self) -> MirrorInfo | None:
        if self._override and self._override != AUTO_MIRROR:
            return MirrorInfo(url=self._override, label=USER_SETTING_LABEL)

        if not isinstance(self._cached, _Unset):
            return self._cached

        country = self._geo_locator.detect_country_code()
        mirror = resolve_mirror_for_country(country, self._rules)
        logger.debug("Country %s resolved to mirror %s", country, mirror)
        self._cached = mirror
        return mirror

    def get_mirror_args(self) -> list[str]:
        """pip index arguments for the selected mirror, or [] for the default index."""
        mirror = self.get_preferred_mirror()
        if mirror is None:
            return []
        return ["-i", mirror.url]

    def clear_cache(self) -> None:
        self._cached = _UNSET
