"""Rules engine for knight-augmented chess, with an HTTP session service."""

__version__ = "0.1.0"
