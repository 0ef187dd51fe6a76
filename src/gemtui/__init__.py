"""A terminal client for asking Gemini questions."""

__version__ = "0.1.0"
