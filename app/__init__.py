"""Main app package."""
