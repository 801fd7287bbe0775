"""Betta HTTP API."""
