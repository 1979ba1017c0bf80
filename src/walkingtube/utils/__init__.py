"""Utility helpers shared across WalkingTube modules."""
