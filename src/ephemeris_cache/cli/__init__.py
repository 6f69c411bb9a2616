"""Command-line interface for the ephemeris cache."""
