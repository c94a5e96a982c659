"""
Database models for the URL shortener.

A single table holds every short link; clicks are aggregated in place.
"""

from .url import URL

__all__ = ["URL"]
