"""Serialization of operations against the shared browser page."""

from .single_flight import SingleFlight

__all__ = ["SingleFlight"]
