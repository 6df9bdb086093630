"""surfcast: multi-provider surf forecast aggregation with a staleness cache."""

__version__ = "0.1.0"
