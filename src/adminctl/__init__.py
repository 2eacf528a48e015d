"""Administration command dispatcher for the host application."""

__all__ = ["__version__"]

__version__ = "0.3.0"
