"""Reading streak tracking."""

__version__ = "0.1.0"
