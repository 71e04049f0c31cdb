from __future__ import annotations

from typing import Any

from cachetools import TTLCache
from loguru import logger

from backoffice.config import settings
from backoffice.services.upstream_client import UpstreamClient

CURRENCY_MEASURE = 'CURRENCY_MEASURE'
PACKAGE_TYPE_MEASURE = 'PACKAGE_TYPE_MEASURE'
WEIGHT_MEASURE = 'WEIGHT_MEASURE'

_LOOKUP_CACHE: TTLCache[str, Any] = TTLCache(maxsize=64, ttl=settings.lookup_cache_ttl_seconds)


def clear_lookup_cache() -> None:
    _LOOKUP_CACHE.clear()


class LookupService:
    """Reference lists for the edit forms (countries, units of measure).

    They change rarely, so one fetch is shared by every session until the
    cache entry expires.
    """

    def __init__(self, client: UpstreamClient) -> None:
        self.client = client

    def _cached(self, key: str, path: str, params: dict | None = None) -> Any:
        if key in _LOOKUP_CACHE:
            return _LOOKUP_CACHE[key]
        logger.debug('Lookup cache miss for {}', key)
        value = self.client.get(path, params=params) or []
        _LOOKUP_CACHE[key] = value
        return value

    def countries(self) -> list[dict]:
        return self._cached('countries', '/BffGeo/Countries')

    def states_and_provinces(self, country_id: str) -> list[dict]:
        return self._cached(f'states:{country_id}', '/BffGeo/StatesAndProvinces', {'countryId': country_id})

    def units_of_measure(self, uom_type_id: str) -> list[dict]:
        return self._cached(f'uom:{uom_type_id}', '/BffLists/UnitsOfMeasure', {'uomTypeId': uom_type_id})

    def currencies(self) -> list[dict]:
        return self.units_of_measure(CURRENCY_MEASURE)

    def package_types(self) -> list[dict]:
        return self.units_of_measure(PACKAGE_TYPE_MEASURE)

    def weight_units(self) -> list[dict]:
        return self.units_of_measure(WEIGHT_MEASURE)
