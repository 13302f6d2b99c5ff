"""Job board client core: normalization, search, saved jobs and applications."""

__version__ = "0.1.0"
