"""Five-Element Compatibility Engine."""

__version__ = "0.1.0"
