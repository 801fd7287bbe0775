"""API request handlers."""
