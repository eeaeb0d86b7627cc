"""Project data and metrics engine for the disaster-restoration ops dashboard."""

__version__ = "0.1.0"
