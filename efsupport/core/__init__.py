"""Game arena and shared error types."""
