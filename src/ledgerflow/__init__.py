"""Ledgerflow: bank sync, classification and reconciliation for small-business books."""

__version__ = "0.1.0"
