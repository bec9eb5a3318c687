"""Batch submission and result reconciliation for a remote reply scorer."""

__version__ = "0.1.0"
