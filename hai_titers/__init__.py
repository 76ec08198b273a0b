"""HAI titer analysis: fetch a publication's subject table, clean it, plot titer increase."""

__version__ = "0.1.0"
