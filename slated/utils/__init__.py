"""Utility helpers for slated."""
