"""Terminal chat server and client over a length-prefixed TCP protocol, with SQLite storage."""

__version__ = "0.1.0"
__all__ = ["__version__"]