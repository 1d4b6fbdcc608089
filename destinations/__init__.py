"""Destination lookup and history package."""
