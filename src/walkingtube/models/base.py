"""Shared base model definitions for WalkingTube domain objects."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class WalkingTubeBaseModel(BaseModel):
    """Base model configured for WalkingTube-wide defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


__all__ = ["WalkingTubeBaseModel"]
