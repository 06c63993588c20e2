"""HTTP API for the popcorn social core."""
