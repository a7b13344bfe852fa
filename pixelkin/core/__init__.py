"""Core infrastructure: models and design providers."""
