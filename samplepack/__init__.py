"""Convert loosely-structured image datasets into a uniform sample store."""

__version__ = "0.3.0"
