"""Incremental static site builder with a live development loop."""

__version__ = "0.1.0"
