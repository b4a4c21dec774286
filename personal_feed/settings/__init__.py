"""Application settings loading."""

from .app import AppSettings, ScoringProvider, get_settings


__all__ = ["AppSettings", "ScoringProvider", "get_settings"]
