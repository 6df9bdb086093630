"""Forecast provider adapters for surfcast.

Each adapter turns one external data source into partial daily records:

- spotter: regional spotter network (California box, already rated)
- stored: third-party marine data previously ingested into the cache database
- global_model: worldwide open-ocean wave model (Open-Meteo Marine)

Adapters never raise provider failures to their caller; a failed call
comes back as an empty AdapterResult.
"""

from .base import (
    AdapterResult,
    HTTPProviderAdapter,
    LocationUnmatched,
    ProviderAdapter,
    ProviderError,
    ProviderTransportError,
    RequestConfig,
)
from .global_model import GlobalModelAdapter
from .spotter import SpotterAdapter, SpotterSpot
from .stored import StoredProviderAdapter

__all__ = [
    "AdapterResult",
    "HTTPProviderAdapter",
    "LocationUnmatched",
    "ProviderAdapter",
    "ProviderError",
    "ProviderTransportError",
    "RequestConfig",
    "GlobalModelAdapter",
    "SpotterAdapter",
    "SpotterSpot",
    "StoredProviderAdapter",
]
