"""Business logic for short links."""
