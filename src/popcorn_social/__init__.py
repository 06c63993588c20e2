"""Social feed aggregation and comment-thread engine for PopcornPal."""

__version__ = "0.1.0"
