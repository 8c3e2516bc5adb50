"""Tripflow Python SDK."""

__version__ = "0.1.0"

from tripflow_sdk.client import TripflowClient

__all__ = ["TripflowClient"]
