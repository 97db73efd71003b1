"""Helpers for the HTTP layer."""
