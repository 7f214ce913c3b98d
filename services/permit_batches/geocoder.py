"""Google Maps geocoding for permit addresses.

Rate limits (HTTP 429 / OVER_QUERY_LIMIT) and network errors are retried
with exponential backoff via tenacity; when retries run out the address is
treated as not found so one bad lookup never aborts a whole pass.
"""
import logging
import time
from typing import Any, Mapping, Optional

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .utils import DataValidationError, GeocodeDeniedError, GeocodeError, RateLimitError

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GEOCODE_SOURCE = "google"

REQUIRED_ADDRESS_FIELDS = ("Street Address", "City", "State", "ZipCode")

# Rate limiting
REQUEST_DELAY_SECONDS = 0.1
MAX_ATTEMPTS = 4

DENIED_STATUSES = {"REQUEST_DENIED", "INVALID_REQUEST"}
RATE_LIMIT_STATUSES = {"OVER_QUERY_LIMIT"}
# OVER_DAILY_LIMIT means the key or billing is exhausted; retrying won't help
QUOTA_STATUSES = {"OVER_DAILY_LIMIT"}

RETRYABLE_ERRORS = (RateLimitError, requests.ConnectionError, requests.Timeout)


def build_full_address(record: Mapping[str, Any]) -> str:
    """
    Build "street, city, state zip" from a permit.

    Raises:
        DataValidationError: any required address field is missing or blank
    """
    missing = [f for f in REQUIRED_ADDRESS_FIELDS if not str(record.get(f) or "").strip()]
    if missing:
        raise DataValidationError(f"Missing required address fields {missing} for entry: {dict(record)}")

    street = str(record["Street Address"]).strip()
    city = str(record["City"]).strip()
    state = str(record["State"]).strip()
    zip_code = str(record["ZipCode"]).strip()
    return f"{street}, {city}, {state} {zip_code}"


class Geocoder:
    """Thin client over the Geocoding API with retry/backoff."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        max_attempts: int = MAX_ATTEMPTS,
        wait=None,
        request_delay: float = REQUEST_DELAY_SECONDS,
    ):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.wait = wait if wait is not None else wait_exponential(multiplier=1, min=1, max=16)
        self.request_delay = request_delay

    def _request(self, address: str) -> Optional[dict]:
        response = self.session.get(
            GEOCODE_URL,
            params={"address": address, "key": self.api_key},
            timeout=self.timeout,
        )
        if response.status_code == 429:
            raise RateLimitError(f"Rate limited geocoding {address!r}")
        response.raise_for_status()

        data = response.json()
        status = data.get("status")
        if status in RATE_LIMIT_STATUSES:
            raise RateLimitError(f"{status} geocoding {address!r}")
        if status in DENIED_STATUSES or status in QUOTA_STATUSES:
            raise GeocodeDeniedError(f"{status}: {data.get('error_message', 'request denied')}")

        results = data.get("results") or []
        if status != "OK" or not results:
            logger.warning(f'Geocode not OK for "{address}": status={status}')
            return None

        location = results[0]["geometry"]["location"]
        return {"lat": location["lat"], "lng": location["lng"]}

    def geocode_address(self, address: str) -> Optional[dict]:
        """
        Geocode a free-text address.

        Returns:
            {'lat': float, 'lng': float} or None if not found / gave up
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return self._request(address)
        except GeocodeDeniedError as e:
            logger.error(f"Geocoding denied for {address!r}: {e}")
        except (GeocodeError, requests.RequestException) as e:
            logger.warning(f"Giving up geocoding {address!r}: {e}")
        except (KeyError, ValueError) as e:
            logger.warning(f"Unexpected geocode response for {address!r}: {e}")
        return None

    def geocode_records(self, records: list[dict]) -> list[dict]:
        """
        Return copies of records with Latitude/Longitude filled in.

        Records are processed one at a time with a fixed delay between
        requests. A record missing address fields aborts the whole call.
        """
        geocoded = []
        for i, record in enumerate(records):
            address = build_full_address(record)
            if i and self.request_delay:
                time.sleep(self.request_delay)

            location = self.geocode_address(address)
            updated = {
                **record,
                "Latitude": location["lat"] if location else None,
                "Longitude": location["lng"] if location else None,
            }
            if location:
                updated["Geocode Source"] = GEOCODE_SOURCE
            geocoded.append(updated)

        found = sum(1 for r in geocoded if r["Latitude"] is not None)
        logger.info(f"Geocoded {found}/{len(records)} records")
        return geocoded
