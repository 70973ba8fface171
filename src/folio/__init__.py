"""Generic pagination engine with a client-side search overlay."""

__version__ = "1.0.0"
