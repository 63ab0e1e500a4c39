"""quoteboard: live market quotes for a watch-list, in the terminal."""

__version__ = "0.1.0"
