"""Core task lifecycle operations for slated."""
