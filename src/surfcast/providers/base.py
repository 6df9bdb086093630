"""Base classes and error types for forecast provider adapters."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import requests

from surfcast.cache.models import Location, ProviderRecord

logger = logging.getLogger(__name__)

# Default per-request HTTP timeout in seconds
REQUEST_TIMEOUT = 10.0

# Default wall-clock budget for one adapter call in seconds
ADAPTER_DEADLINE = 45.0


class ProviderError(RuntimeError):
    """Base provider error."""


class ProviderTransportError(ProviderError):
    """Network, timeout, HTTP status or parse failure inside an adapter."""


class LocationUnmatched(ProviderError):
    """No provider entry lies within tolerance of the location."""


@dataclass
class RequestConfig:
    """HTTP settings injected into each adapter.

    Attributes:
        timeout: Timeout for a single HTTP request (seconds)
        deadline: Budget for a whole adapter call, which may span requests
    """

    timeout: float = REQUEST_TIMEOUT
    deadline: float = ADAPTER_DEADLINE


@dataclass
class AdapterResult:
    """Outcome of one adapter call.

    An empty result means "try the next step", whether the provider had no
    data or failed; ``error`` records which it was for logging.

    Attributes:
        provider: Adapter name
        records: Partial records returned by the provider
        error: Error message when the call failed
    """

    provider: str
    records: list[ProviderRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def dates(self) -> set[date]:
        """Distinct forecast dates covered by this result."""
        return {record.date for record in self.records}

    @property
    def is_empty(self) -> bool:
        """True when the result covers no dates."""
        return not self.records

    @classmethod
    def empty(cls, provider: str, error: Optional[str] = None) -> "AdapterResult":
        """Create an empty result, optionally carrying the failure reason."""
        return cls(provider=provider, records=[], error=error)

    def __str__(self) -> str:
        status = "FAILED" if self.error else ("EMPTY" if self.is_empty else "OK")
        return f"AdapterResult({self.provider}, {status}, days={len(self.dates)})"


class ProviderAdapter(ABC):
    """Abstract base class for forecast provider adapters.

    Subclasses implement ``_fetch_records``; ``fetch`` turns any
    ProviderError into an empty AdapterResult so callers never see
    provider failures as exceptions.
    """

    name: str = "provider"

    @abstractmethod
    def _fetch_records(self, location: Location) -> list[ProviderRecord]:
        """Fetch partial records for a location.

        Raises:
            ProviderError: On any transport or matching failure
        """
        pass

    def fetch(self, location: Location) -> AdapterResult:
        """Fetch records for a location, converting failures to empty results.

        Args:
            location: Location to fetch

        Returns:
            AdapterResult (possibly empty)
        """
        try:
            records = self._fetch_records(location)
        except LocationUnmatched as e:
            logger.info(f"{self.name}: no match for {location.name}: {e}")
            return AdapterResult.empty(self.name)
        except ProviderError as e:
            logger.warning(f"{self.name}: fetch failed for {location.name}: {e}")
            return AdapterResult.empty(self.name, error=str(e))

        result = AdapterResult(provider=self.name, records=records)
        logger.debug(f"{self.name}: {location.name} -> {result}")
        return result

    def close(self) -> None:
        """Release adapter resources."""


class HTTPProviderAdapter(ProviderAdapter):
    """Adapter backed by an injected HTTP session with bounded timeouts."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ):
        """Initialize adapter.

        Args:
            session: HTTP session; a new one is created if not given
            request_config: Timeout settings
        """
        self.session = session or requests.Session()
        self.request_config = request_config or RequestConfig()

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GET a URL and decode its JSON body.

        Raises:
            ProviderTransportError: On timeout, connection error, HTTP error
                status or invalid JSON
        """
        try:
            response = self.session.get(
                url, params=params, timeout=self.request_config.timeout
            )
            response.raise_for_status()
        except requests.Timeout as e:
            raise ProviderTransportError(f"timeout requesting {url}") from e
        except requests.RequestException as e:
            raise ProviderTransportError(f"request to {url} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderTransportError(f"invalid JSON from {url}") from e


class Deadline:
    """Wall-clock budget shared by the requests of one adapter call."""

    def __init__(self, seconds: float, clock=time.monotonic):
        self._clock = clock
        self._expires_at = clock() + seconds

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self, what: str) -> None:
        """Raise ProviderTransportError if the budget is used up."""
        if self.expired:
            raise ProviderTransportError(f"deadline exceeded before {what}")
