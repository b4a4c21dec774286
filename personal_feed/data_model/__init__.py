"""Shared data model primitives."""

from personal_feed.data_model.base import EdgeModel, StrictBaseModel


__all__ = ["EdgeModel", "StrictBaseModel"]
