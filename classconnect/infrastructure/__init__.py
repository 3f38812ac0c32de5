"""Infrastructure adapters (Firebase, notifications)."""
