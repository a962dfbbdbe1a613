"""slated - recurring and relocatable tasks in markdown notes."""

__version__ = "0.3.0"
