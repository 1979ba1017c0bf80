"""WalkingTube: location-tagged walking videos on a map."""

__version__ = "0.1.0"

__all__ = ["__version__"]
