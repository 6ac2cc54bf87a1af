"""ExtGuard — static security analysis for code-editor extensions."""

__version__ = "0.1.0"
