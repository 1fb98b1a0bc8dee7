"""Port definitions (narrow capability interfaces)."""
