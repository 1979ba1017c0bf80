"""Domain models shared across WalkingTube services."""
