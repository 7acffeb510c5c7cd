"""GeeKTunes: catalog API for geek-culture musicians."""

__version__ = "0.1.0"
