"""Helpers for HTTP request and response handling: uploads, strict JSON, downloads, slugs."""

__version__ = "0.1.0"
