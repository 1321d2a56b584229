"""Portfolio contact form backend."""

__version__ = "1.0.0"
