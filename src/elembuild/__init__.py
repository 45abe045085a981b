"""Incremental asset build pipeline for element source trees."""

__version__ = "0.1.0"
