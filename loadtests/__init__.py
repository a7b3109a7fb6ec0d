"""Locust scenarios that ramp virtual users over staged HTTP request sequences."""

__version__ = "0.1.0"
