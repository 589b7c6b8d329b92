"""Bundled rule catalog data."""
