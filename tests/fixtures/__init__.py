"""Test fixtures for gitback."""
