"""Data models for repository structure analysis."""
