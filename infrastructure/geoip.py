"""Async GeoIP country lookup around the synchronous geoip2 library.

geoip2 reads from a local .mmdb file. Calls are wrapped in
asyncio.to_thread() to avoid blocking the event loop.

- Returns "" when the database file is missing or the lookup fails.
- Loopback addresses resolve to a configured default country.
- Lazy-loads the reader on first use (double-checked locking with asyncio.Lock).
"""

import asyncio
from typing import Optional

import geoip2.database
import geoip2.errors
import maxminddb

from shared.ip_utils import is_loopback
from shared.logging import get_logger

log = get_logger(__name__)


class GeoIPService:
    def __init__(self, country_db_path: str, localhost_country: str = "US") -> None:
        self._country_db_path = country_db_path
        self._localhost_country = localhost_country
        self._country_reader: Optional[geoip2.database.Reader] = None
        self._country_loaded = False
        self._lock = asyncio.Lock()

    async def _get_country_reader(self) -> Optional[geoip2.database.Reader]:
        if not self._country_loaded:
            async with self._lock:
                if not self._country_loaded:
                    try:
                        self._country_reader = await asyncio.to_thread(
                            geoip2.database.Reader, self._country_db_path
                        )
                    except (OSError, maxminddb.InvalidDatabaseError) as e:
                        log.warning(
                            "geoip_country_db_unavailable",
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                        self._country_reader = None
                    self._country_loaded = True
        return self._country_reader

    async def get_country_code(self, ip_address: str) -> str:
        """ISO 3166-1 alpha-2 code for ``ip_address``, or "" when unknown."""
        if is_loopback(ip_address):
            log.debug("geoip_localhost_default", country=self._localhost_country)
            return self._localhost_country

        reader = await self._get_country_reader()
        if reader is None:
            return ""
        try:
            result = await asyncio.to_thread(reader.country, ip_address)
            return result.country.iso_code or ""
        except (
            geoip2.errors.AddressNotFoundError,
            ValueError,
            maxminddb.InvalidDatabaseError,
        ):
            return ""

    def close(self) -> None:
        if self._country_reader is not None:
            self._country_reader.close()
