"""Command-line interface for gitback."""
