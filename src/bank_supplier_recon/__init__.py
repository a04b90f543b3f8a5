"""Reconciliation of bank statements against supplier ledgers."""

__version__ = "0.1.0"
