"""Service layer for WalkingTube: store, auth, search, preview and the map view controller."""
