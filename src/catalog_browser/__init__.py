"""Catalog browser: scrape, paginate and resolve streams from video catalog sites."""

__version__ = "0.1.0"
