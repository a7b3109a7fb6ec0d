"""Locustfiles: ``locust -f loadtests/scenarios/<name>.py``."""
