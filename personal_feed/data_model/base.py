"""Shared Pydantic base models."""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Base model with strict, immutable defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class EdgeModel(BaseModel):
    """Immutable model for payloads coming from external services.

    Unknown fields are ignored rather than rejected, since store rows and
    oracle responses carry columns the pipeline does not use.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")
