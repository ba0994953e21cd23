"""Clients for external services."""

from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = ["HttpClient", "HttpError", "MockHttpClient", "RealHttpClient"]
