"""Personalized story retrieval and ranking pipeline."""

__version__ = "0.1.0"
