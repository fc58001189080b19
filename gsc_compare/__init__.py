"""Snapshot comparison engine for Google Search Console data."""

__version__ = "0.1.0"
