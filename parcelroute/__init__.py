"""Delivery price calculation: geocoding, routing and tiered pricing."""

__version__ = "1.0.0"
