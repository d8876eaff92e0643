"""Endpoint Shuffle: scan, reconcile and randomly serve discovered HTTP endpoints."""

__version__ = "0.1.0"
