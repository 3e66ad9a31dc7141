"""Live force-directed map of the allowed traffic routes between pods."""

__version__ = "1.0.0"
