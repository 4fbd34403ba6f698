"""
Topic Harvest - incremental harvesting of items from paginated collections.

This package walks every page of a remote collection with a bounded worker
pool, deduplicates the items it finds, and exposes them through a filtered,
paginated view that updates while pages arrive.
"""

__version__ = "0.1.0"
