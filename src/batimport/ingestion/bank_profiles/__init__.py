"""Vendor constants for the supported banks."""
