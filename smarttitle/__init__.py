"""smart-title — descriptive titles for conversation sessions."""

__version__ = "0.1.0"
